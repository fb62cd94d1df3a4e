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

`LazyCollection` instances are the results of `Resource.find('all')` and
`Resource.where()`.

A collection isn't requested from the remote service until its contents are
used. Until then it can be filtered further with `where()`, which returns a
new collection with the added query parameters::

    >>> people = Person.where(active=True).where(department='sales')
    >>> len(people)   # GET /people.json?active=true&department=sales

"""

from collections.abc import Mapping
import copy
import logging

from remoteresources import errors, paths


log = logging.getLogger('remoteresources.collection')


def deep_merge(original, other):
    """Returns a new dictionary of `original` updated with `other`,
    merging nested dictionaries rather than replacing them."""
    merged = copy.copy(dict(original))
    for key, value in other.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class SequenceProxy(object):

    """An abstract class implementing the sequence protocol by proxying it to
    an instance attribute.

    `SequenceProxy` instances act like sequences by forwarding all sequence
    method calls to their `entries` attributes. The `entries` attribute should
    be a list or some other that implements the sequence protocol.

    """

    def make_sequence_method(methodname):
        """Makes a new function that proxies calls to `methodname` to the
        `entries` attribute of the instance on which the function is called as
        an instance method."""
        def seqmethod(self, *args, **kwargs):
            # Proxy these methods to self.entries.
            return getattr(self.entries, methodname)(*args, **kwargs)
        seqmethod.__name__ = methodname
        return seqmethod

    __len__      = make_sequence_method('__len__')
    __getitem__  = make_sequence_method('__getitem__')
    __iter__     = make_sequence_method('__iter__')
    __reversed__ = make_sequence_method('__reversed__')
    __contains__ = make_sequence_method('__contains__')

    del make_sequence_method


class LazyCollection(SequenceProxy):

    """A list of resources that is requested from the remote service the
    first time its contents are used.

    Parameter `elements` is a list of resources for a collection that is
    already delivered. Otherwise the collection is requested for
    `resource_class`:

    * from the resource class's collection path, if `from_` is `None`
    * from the literal path `from_`, if it contains a ``/``
    * from the custom method named `from_` otherwise

    with the query string made of `query_params`. `prefix_options` fill in
    the resource class's prefix, and are given to every resource in the
    collection. `path_params` are all the parameters the collection was
    found with.

    Once delivered, the collection is not requested again unless you call
    `refresh()`.

    To read collection responses that aren't simply lists of resources,
    such as paginated responses, subclass `LazyCollection`, override
    `parse_response()`, and set the subclass as the resource class's
    `collection_class`.

    """

    def __init__(self, elements=None, resource_class=None, from_=None,
                 query_params=None, path_params=None, prefix_options=None):
        self.resource_class = resource_class
        self.from_ = from_
        self.query_params = dict(query_params or {})
        self.path_params = dict(path_params or {})
        self.prefix_options = dict(prefix_options or {})
        self.requested = elements is not None
        self.elements = list(elements) if elements is not None else []

    @property
    def entries(self):
        if not self.requested:
            self.request_resources()
        return self.elements

    def request_path(self):
        """Returns the path from which the collection is requested."""
        cls = self.resource_class
        if self.from_ is None:
            return cls.collection_path(self.prefix_options, self.query_params)
        if '/' in self.from_:
            return self.from_ + paths.query_string(self.query_params)
        return cls.custom_method_collection_path(self.from_, self.path_params)

    def request_resources(self):
        """Requests the collection's resources from the remote service.

        A collection that isn't found (that is, a 404 response) is empty.

        """
        cls = self.resource_class
        if cls is None:
            self.requested = True
            return
        try:
            response = cls.connection().get(self.request_path(), cls.headers)
            data = cls.format.decode(response.body)
            self.elements = [cls.instantiate_record(element,
                                                    self.prefix_options)
                             for element in self.parse_response(data)]
        except errors.ResourceNotFound:
            log.debug('No %s collection found; treating it as empty',
                      cls.__name__)
            self.elements = []
        self.requested = True

    def parse_response(self, data):
        """Returns the list of resource data in the decoded response `data`.

        Override this method in a subclass to read the elements out of
        responses that wrap them with other data. You can keep any other data
        on the collection instance.

        """
        if data is None:
            return []
        return data

    def call(self):
        """Delivers the collection if it hasn't been yet, and returns it."""
        if not self.requested:
            self.request_resources()
        return self

    def refresh(self):
        """Requests the collection from the remote service again, and
        returns it."""
        self.request_resources()
        return self

    def to_list(self):
        return list(self.entries)

    def first(self):
        entries = self.entries
        return entries[0] if entries else None

    def last(self):
        entries = self.entries
        return entries[-1] if entries else None

    def where(self, **clauses):
        """Returns a new undelivered collection of the same resources with
        the additional query parameters `clauses`.

        Clauses are merged deeply, so nested parameters add to rather than
        replace the collection's existing nested parameters.

        """
        params = deep_merge(self.path_params, clauses)
        if self.resource_class is None:
            prefix_options, query_params = {}, params
        else:
            prefix_options, query_params = self.resource_class.split_options(params)
        return type(self)(resource_class=self.resource_class, from_=self.from_,
                          query_params=query_params, path_params=params,
                          prefix_options=prefix_options)

    def first_or_create(self, **attributes):
        """Returns the first resource in the collection, or creates a new
        resource with the collection's query parameters and `attributes` if
        the collection is empty."""
        cls = self.require_resource_class()
        first = self.first()
        if first is not None:
            return first
        return cls.create(**dict(self.query_params, **attributes))

    def first_or_initialize(self, **attributes):
        """Returns the first resource in the collection, or builds a new
        unsaved resource with the collection's query parameters and
        `attributes` if the collection is empty."""
        cls = self.require_resource_class()
        first = self.first()
        if first is not None:
            return first
        return cls(dict(self.query_params, **attributes))

    def require_resource_class(self):
        if self.resource_class is None:
            raise ValueError('Cannot create resource from resource type: %r'
                             % (self.resource_class,))
        return self.resource_class

    def __repr__(self):
        if not self.requested:
            return '<%s of %s (not requested) %r>' % (
                type(self).__name__, getattr(self.resource_class, '__name__',
                                             None), self.path_params)
        return '<%s %r>' % (type(self).__name__, self.elements)
