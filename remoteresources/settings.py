# Copyright (c) 2009-2010 Six Apart Ltd.
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# * Redistributions of source code must retain the above copyright notice,
#   this list of conditions and the following disclaimer.
#
# * Redistributions in binary form must reproduce the above copyright notice,
#   this list of conditions and the following disclaimer in the documentation
#   and/or other materials provided with the distribution.
#
# * Neither the name of Six Apart Ltd. nor the names of its contributors may
#   be used to endorse or promote products derived from this software without
#   specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

"""

Class-level settings for `Resource` classes.

Settings are declared as descriptors on the `Resource` metaclass, so they are
read and assigned through the resource class itself::

    >>> class Person(Resource):
    ...     site = 'http://api.example.com/'
    ...
    >>> Person.user = 'bob'

Every kind of setting falls back to the superclass's value until the class
sets its own. `ThreadLocalSetting` values are additionally kept per thread
(see `ThreadLocalStore`), so threads can configure, say, different
credentials for the same class without racing each other.

"""

from collections.abc import MutableMapping
import copy
import threading
import weakref


class ThreadLocalStore(object):

    """A set of named values kept separately for each thread.

    A thread that reads a value it never set gets a copy of the main
    thread's value, which it can then change without affecting the main
    thread. A value set in some other thread also becomes the main thread's
    value if the main thread has none yet.

    """

    def __init__(self):
        self._values = weakref.WeakKeyDictionary()
        self._lock = threading.Lock()

    def _values_for(self, thread):
        with self._lock:
            try:
                return self._values[thread]
            except KeyError:
                values = self._values[thread] = {}
                return values

    def defined(self, name):
        """Returns whether a value for `name` is available in the current
        thread, either directly or through the main thread."""
        return (name in self._values_for(threading.current_thread())
                or name in self._values_for(threading.main_thread()))

    def get(self, name):
        """Returns the current thread's value for `name`.

        If the current thread has no value but the main thread does, the
        main thread's value is copied into the current thread first. If
        neither has a value, raises `KeyError`.

        """
        current = self._values_for(threading.current_thread())
        if name in current:
            return current[name]
        main = self._values_for(threading.main_thread())
        value = main[name]
        if current is not main:
            value = current[name] = copy.copy(value)
        return value

    def set(self, name, value):
        current = self._values_for(threading.current_thread())
        current[name] = value
        main = self._values_for(threading.main_thread())
        if name not in main:
            main[name] = value

    def delete(self, name):
        self._values_for(threading.current_thread()).pop(name, None)


class Setting(object):

    """A class-level setting of a `Resource` class.

    A setting falls back to the value of the same setting on the class's
    superclasses until it's assigned on the class. If no class in the
    hierarchy has a value, the `default` is used; if `default` is callable,
    it's called with the class to compute the value.

    Optional parameter `convert` is a function applied to values when they
    are assigned. Set `inherited` to `False` for settings that every class
    computes for itself rather than taking from its superclass.

    """

    store_attr = '_settings'

    def __init__(self, default=None, convert=None, inherited=True,
                 doc=None):
        self.default = default
        self.convert = convert
        self.inherited = inherited
        self.name = None
        if doc is not None:
            self.__doc__ = doc

    def __set_name__(self, owner, name):
        self.name = name

    def store_for(self, cls):
        """Returns the settings store that belongs to `cls` itself, if any."""
        return cls.__dict__.get(self.store_attr)

    def is_set(self, cls):
        store = self.store_for(cls)
        return store is not None and self.name in store

    def value_for(self, cls):
        return self.store_for(cls)[self.name]

    def assign(self, cls, value):
        self.store_for(cls)[self.name] = value

    def __get__(self, cls, metacls):
        if cls is None:
            return self
        classes = cls.__mro__ if self.inherited else (cls,)
        for klass in classes:
            if self.is_set(klass):
                return self.value_for(klass)
        if callable(self.default):
            return self.default(cls)
        return self.default

    def __set__(self, cls, value):
        if self.convert is not None and value is not None:
            value = self.convert(value)
        self.assign(cls, value)

    def __delete__(self, cls):
        self.store_for(cls).pop(self.name, None)


class ThreadLocalSetting(Setting):

    """A `Setting` whose value is kept per thread, in the class's
    `ThreadLocalStore`."""

    store_attr = '_thread_settings'

    def is_set(self, cls):
        store = self.store_for(cls)
        return store is not None and store.defined(self.name)

    def value_for(self, cls):
        return self.store_for(cls).get(self.name)

    def assign(self, cls, value):
        self.store_for(cls).set(self.name, value)

    def __delete__(self, cls):
        self.store_for(cls).delete(self.name)


class InheritingHeaders(MutableMapping):

    """The headers of a `Resource` class, as seen through `HeadersSetting`.

    Lookups fall back to the superclass's headers for names the class
    hasn't set itself, so later changes to the superclass's headers show
    through. Assignments and deletions change only the class's own headers.

    """

    def __init__(self, own, parent=None):
        self.own = own
        self.parent = parent

    def merged(self):
        headers = dict(self.parent) if self.parent is not None else {}
        headers.update(self.own)
        return headers

    def __getitem__(self, name):
        if name in self.own:
            return self.own[name]
        if self.parent is not None:
            return self.parent[name]
        raise KeyError(name)

    def __setitem__(self, name, value):
        self.own[name] = value

    def __delitem__(self, name):
        del self.own[name]

    def __iter__(self):
        return iter(self.merged())

    def __len__(self):
        return len(self.merged())

    def __repr__(self):
        return repr(self.merged())


class HeadersSetting(ThreadLocalSetting):

    """A thread local setting for the HTTP headers sent with every request.

    A class's headers are its superclass's headers updated with the class's
    own. Only the class's own headers are stored, so headers can be added by
    changing the value in place::

        >>> Person.headers['X-Api-Key'] = 'abc123'

    """

    def __get__(self, cls, metacls):
        if cls is None:
            return self
        store = self.store_for(cls)
        if not store.defined(self.name):
            store.set(self.name, {})
        parent = None
        for base in cls.__mro__[1:]:
            if self.store_for(base) is not None:
                parent = self.__get__(base, metacls)
                break
        return InheritingHeaders(store.get(self.name), parent)

    def __set__(self, cls, value):
        self.assign(cls, dict(value or {}))
