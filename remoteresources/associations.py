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

Associations are `Property` class attributes that link a `Resource` to the
resources it has (`HasMany`, `HasOne`) or belongs to (`BelongsTo`).

For example:

>>> class Post(Resource):
...     site     = 'http://blog.example.com/'
...     comments = associations.HasMany()
...     author   = associations.BelongsTo(class_name='Person')
...
>>> post = Post.find(1)
>>> post.comments           # GET /comments.json?post_id=1
>>> post.author             # GET /people/<post.author_id>.json

An association's value is the matching attribute of the resource when the
remote service included it in the resource's data. Otherwise the associated
resources are requested the first time the association is read, and kept
for the life of the resource instance.

Each declared association is described by a `Reflection` in the class's
`reflections`. The attribute loader consults the reflections to pick the
class for nested resources in response data.

"""

from collections import namedtuple
import importlib

import inflection

import remoteresources.resource
from remoteresources.fields import Property


class Reflection(namedtuple('Reflection',
                            'macro name class_name foreign_key owner')):

    """A description of a declared association.

    `macro` is one of ``has_many``, ``has_one`` or ``belongs_to``.
    `class_name` is the associated `Resource` class, or its name: either a
    bare name of a declared resource class or a dotted ``module.Class``
    path.

    """

    __slots__ = ()

    @property
    def klass(self):
        """The associated `Resource` class."""
        class_name = self.class_name
        if not isinstance(class_name, str):
            return class_name
        if '.' in class_name:
            modulename, _, name = class_name.rpartition('.')
            return getattr(importlib.import_module(modulename), name)
        return remoteresources.resource.find_by_name(class_name)


class Association(Property):

    """A property that finds the resources associated with a resource.

    Optional parameter `class_name` is the associated `Resource` class or
    the name of that class. If not given, the class name is derived from the
    attribute name of the association. Optional parameter `foreign_key` is
    the attribute holding the associated resource's id, for associations
    that use one.

    """

    macro = None

    def __init__(self, class_name=None, foreign_key=None):
        self.class_name = class_name
        self.foreign_key = foreign_key

    def default_class_name(self, attrname):
        return inflection.camelize(attrname)

    def default_foreign_key(self, attrname):
        return None

    def install(self, attrname, cls):
        self.attrname = attrname
        self.of_cls = cls
        self.reflection = Reflection(
            macro=self.macro,
            name=attrname,
            class_name=self.class_name or self.default_class_name(attrname),
            foreign_key=self.foreign_key or self.default_foreign_key(attrname),
            owner=cls,
        )
        cls.reflections[attrname] = self.reflection

    def __get__(self, obj, cls):
        if obj is None:
            return self
        cache = obj._association_cache
        if self.attrname in cache:
            return cache[self.attrname]
        if self.attrname in obj.attributes:
            return obj.attributes[self.attrname]
        value = cache[self.attrname] = self.find(obj)
        return value

    def __set__(self, obj, value):
        obj._association_cache[self.attrname] = value

    def find(self, obj):
        """Requests and returns the resources associated with `obj`."""
        raise NotImplementedError


class HasMany(Association):

    """An association with the resources that refer to this resource.

    The associated resources are found by querying their collection for
    the ones whose foreign key parameter is this resource's id. The foreign
    key is by default ``<element name>_id``, for this resource's element
    name.

    """

    macro = 'has_many'

    def default_class_name(self, attrname):
        return inflection.camelize(inflection.singularize(attrname))

    def find(self, obj):
        klass = self.reflection.klass
        if obj.is_new():
            return []
        key = self.reflection.foreign_key or '%s_id' % type(obj).element_name
        return klass.find('all', params={key: obj.id})


class HasOne(Association):

    """An association with the one resource that belongs to this resource.

    If the associated class is a `SingletonResource`, it is found with its
    `foreign_key` parameter, by default ``<element name>_id``. Otherwise it
    is requested from the path named for the association under this
    resource, as in ``/people/1/ship.json``.

    """

    macro = 'has_one'

    def find(self, obj):
        klass = self.reflection.klass
        if obj.is_new():
            return None
        owner = type(obj)
        if getattr(klass, 'singleton_name', None) is not None:
            key = self.reflection.foreign_key or '%s_id' % owner.element_name
            return klass.find(params={key: obj.id})
        path = '/%s/%s/%s%s' % (owner.collection_name, obj.to_param(),
                                self.attrname, owner.format_extension)
        return klass.find('one', from_=path)


class BelongsTo(Association):

    """An association with the resource this resource refers to by id.

    The associated resource's id is read from the foreign key attribute,
    by default ``<attribute name>_id``. If that attribute is unset, the
    association's value is `None`.

    """

    macro = 'belongs_to'

    def default_foreign_key(self, attrname):
        return '%s_id' % attrname

    def __get__(self, obj, cls):
        if obj is None:
            return self
        if obj.get(self.reflection.foreign_key) is None:
            return None
        return super(BelongsTo, self).__get__(obj, cls)

    def find(self, obj):
        return self.reflection.klass.find(obj.get(self.reflection.foreign_key))
