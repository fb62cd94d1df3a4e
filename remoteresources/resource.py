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

`Resource` is the class of objects that represent the resources of a remote
REST service.

Declare a `Resource` subclass for each kind of resource, with the service's
URL as its `site`. The class's `element_name` and `collection_name` (by
default the underscored class name and its plural) name the resource in URL
paths::

    >>> class Person(Resource):
    ...     site = 'http://api.example.com/'
    ...     name = fields.String()
    ...
    >>> person = Person.find(1)      # GET /people/1.json
    >>> person.name = 'Matz'
    >>> person.save()                # PUT /people/1.json
    True

Resources nested under other resources declare a `prefix` with
placeholders for the parent resources' ids::

    >>> class Comment(Resource):
    ...     site   = 'http://api.example.com/'
    ...     prefix = '/posts/:post_id/'
    ...
    >>> Comment.find('all', params={'post_id': 5})   # GET /posts/5/comments.json

"""

from collections.abc import Mapping
import copy
import logging
import re
import sys
import threading
import types
from urllib.parse import unquote, urlsplit

import inflection

from remoteresources import errors, formats, paths, signals, validations
from remoteresources.collection import LazyCollection
from remoteresources.connection import Connection
from remoteresources.fields import Field, Property, for_type
from remoteresources.settings import (HeadersSetting, Setting,
                                      ThreadLocalSetting, ThreadLocalStore)


log = logging.getLogger('remoteresources.resource')

classes_by_name = {}
# Only the classes declared at the top level of their modules.
top_level_classes_by_name = {}

# Settings that determine how a class's connection is made.
CONNECTION_SETTINGS = ('site', 'proxy', 'user', 'password', 'bearer_token',
                       'auth_type', 'timeout', 'open_timeout',
                       'read_timeout', 'ssl_options')

ID_FROM_LOCATION = re.compile(r'/([^/]*?)(\.\w+)?$')


def find_by_name(name):
    """Finds and returns the Resource subclass with the given name.

    Parameter `name` should be a bare class name with no module. If there is
    no class by that name, raises `KeyError`.

    """
    return classes_by_name[name]


class hybridmethod(object):

    """A method that is a class method when called on the class, and an
    instance method when called on an instance.

    Decorate the class method with `hybridmethod`, then the instance method
    with the `instance` attribute of the result, as with `property.setter`.

    """

    def __init__(self, class_func, instance_func=None):
        self.class_func = class_func
        self.instance_func = instance_func
        self.__doc__ = class_func.__doc__

    def instance(self, instance_func):
        self.instance_func = instance_func
        return self

    def __get__(self, obj, cls):
        if obj is None or self.instance_func is None:
            return types.MethodType(self.class_func, cls)
        return types.MethodType(self.instance_func, obj)


def default_prefix(cls):
    path = urlsplit(cls.site).path if cls.site else ''
    if not path.endswith('/'):
        path += '/'
    return path


class SiteSetting(ThreadLocalSetting):

    """The URL of the remote service.

    Any credentials in the URL also become the class's `user` and
    `password`.

    """

    def __set__(self, cls, value):
        if value is not None:
            value = str(value)
            site = urlsplit(value)
            if site.username is not None:
                cls.user = unquote(site.username)
            if site.password is not None:
                cls.password = unquote(site.password)
        self.assign(cls, value)


class SchemaSetting(Setting):

    """The known attributes of the resource, as a mapping of attribute names
    to type names.

    Assigning a schema installs a typed field for each attribute the class
    doesn't already declare a field for.

    """

    def __set__(self, cls, value):
        value = dict(value or {})
        for attrname, type_name in value.items():
            if attrname not in cls.fields:
                cls.add_to_class(attrname, for_type(type_name))
        self.assign(cls, value)


class ResourceMeta(type):

    """Metaclass for `Resource` classes.

    This metaclass installs all `remoteresources.fields.Property` instances
    declared as attributes of the new class, including all fields and
    associations, and assigns any class settings (such as `site`) given in
    the class body.

    This metaclass also makes the new class findable through the
    `resource.find_by_name()` function.

    """

    site = SiteSetting()
    proxy = ThreadLocalSetting(convert=str)
    user = ThreadLocalSetting()
    password = ThreadLocalSetting()
    bearer_token = ThreadLocalSetting()
    auth_type = ThreadLocalSetting(convert=lambda value: str(value).lower())
    timeout = ThreadLocalSetting()
    open_timeout = ThreadLocalSetting()
    read_timeout = ThreadLocalSetting()
    ssl_options = ThreadLocalSetting(convert=dict)
    headers = HeadersSetting()

    format = Setting(default=formats.json_format, convert=formats.lookup)
    prefix = Setting(default=default_prefix, convert=str)
    primary_key = Setting(default='id', convert=str)
    include_format_in_path = Setting(default=True)
    include_root_in_json = Setting(default=True)
    connection_class = Setting(default=lambda cls: Connection)
    collection_class = Setting(default=lambda cls: LazyCollection)
    errors_parser = Setting(
        default=lambda cls: validations.parser_for(cls.format))
    remote_errors = Setting(default=(errors.ResourceInvalid,),
                            convert=tuple)
    rescue_handlers = Setting(default=(), convert=tuple)
    schema = SchemaSetting(default=lambda cls: {})

    element_name = Setting(
        default=lambda cls: inflection.underscore(cls.__name__),
        convert=str, inherited=False)
    collection_name = Setting(
        default=lambda cls: inflection.pluralize(cls.element_name),
        convert=str, inherited=False)

    def __new__(cls, name, bases, attrs):
        """Creates and returns a new `Resource` class with its declared
        fields, associations and settings."""
        fields = {}
        reflections = {}
        new_properties = {}
        settings = {}

        # Inherit all the parent Resource classes' fields and associations.
        for base in reversed(bases):
            if isinstance(base, ResourceMeta):
                fields.update(base.fields)
                reflections.update(base.reflections)

        for attrname, value in list(attrs.items()):
            if cls.is_setting(attrname):
                settings[attrname] = attrs.pop(attrname)
            elif isinstance(value, Property):
                new_properties[attrname] = value
            elif attrname in fields:
                # Throw out any parent fields that the subclass defined as
                # something other than a Field.
                del fields[attrname]

        synthesized = attrs.pop('_synthesized', False)
        attrs['fields'] = fields
        attrs['reflections'] = reflections
        attrs['_settings'] = {}
        attrs['_thread_settings'] = ThreadLocalStore()
        attrs['_connections'] = threading.local()
        attrs['_generated_resources'] = {}
        obj_cls = super(ResourceMeta, cls).__new__(cls, name, bases, attrs)

        for attrname, value in new_properties.items():
            obj_cls.add_to_class(attrname, value)

        for attrname, value in settings.items():
            setattr(obj_cls, attrname, value)

        # Let nested resource classes find classes in their enclosing class.
        for value in attrs.values():
            if isinstance(value, ResourceMeta):
                type.__setattr__(value, '_enclosing_class', obj_cls)

        # Register the new class so associations can forward-reference it.
        if not synthesized:
            classes_by_name[name] = obj_cls
            if '.' not in obj_cls.__qualname__:
                top_level_classes_by_name[name] = obj_cls

        return obj_cls

    @classmethod
    def is_setting(cls, attrname):
        for klass in cls.__mro__:
            if isinstance(klass.__dict__.get(attrname), Setting):
                return True
        return False

    def add_to_class(cls, name, value):
        if isinstance(value, Field):
            cls.fields[name] = value
        value.install(name, cls)
        type.__setattr__(cls, name, value)

    @property
    def prefix_parameters(cls):
        """The set of placeholder names in the class's `prefix`."""
        return paths.parse_prefix_parameters(cls.prefix)

    @property
    def format_extension(cls):
        """The extension for the class's format to add to paths, such as
        ``.json``, or an empty string if `include_format_in_path` is
        false."""
        if not cls.include_format_in_path:
            return ''
        return '.%s' % cls.format.extension


class Resource(object, metaclass=ResourceMeta):

    """A resource of a remote REST service.

    A resource holds its data in its `attributes` dictionary. Attributes
    declared with fields (or in the class's `schema`) are also available as
    typed attributes of the resource; all attributes are available through
    `get()`, `set()` and item access.

    Parameter `attributes` is a dictionary of the new resource's attributes,
    to which any keyword arguments are added. Optional parameter `persisted`
    marks the resource as one that already exists on the remote service.

    """

    def __init__(self, attributes=None, persisted=False, **kwargs):
        self.attributes = {}
        self.prefix_options = {}
        self.persisted = persisted
        self.errors = validations.Errors(self)
        self._association_cache = {}
        self._remote_errors = None

        if attributes is None:
            attributes = {}
        if kwargs:
            if not isinstance(attributes, Mapping):
                raise TypeError('expected an attributes mapping, got %r'
                                % (attributes,))
            attributes = dict(attributes, **kwargs)
        self.load(attributes, False, persisted)

    # Attribute access

    def get(self, name, default=None):
        return self.attributes.get(name, default)

    def set(self, name, value):
        self.attributes[name] = value

    def __getitem__(self, name):
        return self.attributes[name]

    def __setitem__(self, name, value):
        self.attributes[name] = value

    def __delitem__(self, name):
        del self.attributes[name]

    def __contains__(self, name):
        return name in self.attributes

    def _get_id(self):
        return self.attributes.get(type(self).primary_key)

    def _set_id(self, value):
        self.attributes[type(self).primary_key] = value

    id = property(_get_id, _set_id,
                  doc="""The resource's id, the value of its primary key
                  attribute.""")

    def to_param(self):
        """Returns the resource's id as it appears in URL paths, or `None`
        for a resource with no id."""
        if self.id is None:
            return None
        return paths.to_param(self.id)

    @classmethod
    def declared_attributes(cls):
        names = list(cls.schema)
        for field in cls.fields.values():
            if field.api_name not in names:
                names.append(field.api_name)
        return names

    def known_attributes(self):
        """Returns the names of the resource's declared attributes and of
        all the attributes it has."""
        names = type(self).declared_attributes()
        for name in self.attributes:
            if name not in names:
                names.append(name)
        return names

    # Loading

    def load(self, attributes, remove_root=False, persisted=False):
        """Adds the data in the mapping `attributes` to the resource.

        Any prefix options in `attributes` are split out into the resource's
        `prefix_options`. If what's left is a single key named for the
        resource's `element_name` (as in ``{"person": {...}}``), or
        `remove_root` is true, the data is unwrapped from that key.

        Nested mappings become resources, as do lists of mappings; see
        `find_or_create_resource_for()` for how their classes are chosen.
        Other values are copied into the resource's attributes.

        Nested resources are marked persisted if `persisted` is true.

        Returns the resource.

        """
        if not isinstance(attributes, Mapping):
            raise TypeError('expected an attributes mapping, got %r'
                            % (attributes,))
        cls = type(self)
        prefix_options, attributes = cls.split_options(attributes)
        self.prefix_options.update(prefix_options)

        if len(attributes) == 1:
            remove_root = cls.element_name == next(iter(attributes))
        if remove_root:
            attributes = formats.remove_root(attributes)
            if not isinstance(attributes, Mapping):
                raise TypeError('expected a mapping under the root, got %r'
                                % (attributes,))

        for key, value in attributes.items():
            key = str(key)
            if isinstance(value, list):
                if value and all(isinstance(item, Mapping) for item in value):
                    resource = self.find_or_create_resource_for_collection(key)
                    value = [resource(item, persisted) for item in value]
                else:
                    value = [copy.copy(item) for item in value]
            elif isinstance(value, Mapping):
                resource = self.find_or_create_resource_for(key)
                value = resource(value, persisted)
            else:
                value = copy.copy(value)
            self.attributes[key] = value
        return self

    def find_or_create_resource_for_collection(self, name):
        cls = type(self)
        if name in cls.reflections:
            return cls.reflections[name].klass
        return self.find_or_create_resource_for(inflection.singularize(name))

    def find_or_create_resource_for(self, name):
        """Returns the resource class for nested data under the key `name`.

        The class is, in order of preference:

        * the class of the association declared as `name`
        * a resource class named for `name` (as in ``Address`` for
          ``address``) declared inside this resource's class, or inside the
          classes enclosing it
        * a top-level resource class of that name in this resource class's
          module, or declared in any other module
        * a new resource class of that name, with this resource class's site
          and prefix

        """
        cls = type(self)
        if name in cls.reflections:
            return cls.reflections[name].klass
        class_name = inflection.camelize(name)

        scope = cls
        while scope is not None:
            candidate = scope.__dict__.get(class_name)
            if isinstance(candidate, ResourceMeta):
                return candidate
            candidate = scope._generated_resources.get(class_name)
            if candidate is not None:
                return candidate
            scope = scope.__dict__.get('_enclosing_class')

        module = sys.modules.get(cls.__module__)
        candidate = getattr(module, class_name, None)
        if isinstance(candidate, ResourceMeta):
            return candidate
        # Classes nested in other classes (or declared in functions) are
        # only found from inside their enclosing class.
        if class_name in top_level_classes_by_name:
            return top_level_classes_by_name[class_name]

        return cls.create_resource_for(class_name)

    @classmethod
    def create_resource_for(cls, class_name):
        """Makes a new resource class named `class_name`, for nested data
        with no declared class.

        The new class has this class's site and prefix. It is kept in this
        class's registry of generated classes, so it is made only once.

        """
        try:
            return cls._generated_resources[class_name]
        except KeyError:
            pass
        log.debug('Generating resource class %s for %s', class_name,
                  cls.__name__)
        resource = ResourceMeta(class_name, (Resource,), {
            '__module__': cls.__module__,
            '__qualname__': '%s.%s' % (cls.__qualname__, class_name),
            '_synthesized': True,
        })
        resource.prefix = cls.prefix
        if cls.site is not None:
            resource.site = cls.site
        type.__setattr__(resource, '_enclosing_class', cls)
        cls._generated_resources[class_name] = resource
        return resource

    @classmethod
    def instantiate_record(cls, record, prefix_options=None):
        resource = cls(record, True)
        resource.prefix_options.update(prefix_options or {})
        return resource

    @classmethod
    def instantiate_collection(cls, elements, query_params=None,
                               prefix_options=None):
        return cls.collection_class(
            elements=[cls.instantiate_record(element, prefix_options)
                      for element in elements or ()],
            resource_class=cls, query_params=query_params,
            prefix_options=prefix_options)

    # Connection

    @classmethod
    def parent_resource(cls):
        for base in cls.__mro__[1:]:
            if isinstance(base, ResourceMeta):
                return base
        return None

    @classmethod
    def defines_connection(cls):
        """Returns whether the class has any connection settings of its own,
        rather than only its superclass's."""
        store = cls._thread_settings
        return ('format' in cls._settings
                or any(store.defined(name) for name in CONNECTION_SETTINGS))

    @classmethod
    def connection_options(cls):
        return dict(
            site=cls.site,
            format=cls.format,
            proxy=cls.proxy,
            user=cls.user,
            password=cls.password,
            bearer_token=cls.bearer_token,
            auth_type=cls.auth_type,
            timeout=cls.timeout,
            open_timeout=cls.open_timeout,
            read_timeout=cls.read_timeout,
            ssl_options=cls.ssl_options,
        )

    @classmethod
    def connection(cls, refresh=False):
        """Returns the `Connection` for requests of this class's resources.

        A class with no connection settings of its own uses its superclass's
        connection. Otherwise a new connection is made the first time one is
        needed in each thread, and again whenever the class's settings change
        or `refresh` is true.

        """
        parent = cls.parent_resource()
        if parent is not None and not cls.defines_connection():
            return parent.connection(refresh)

        cache = cls._connections
        options = cls.connection_options()
        if (refresh or getattr(cache, 'connection', None) is None
                or cache.options != options):
            cache.connection = cls.connection_class(**options)
            cache.options = options
        return cache.connection

    # Paths

    @classmethod
    def split_options(cls, options=None):
        """Divides the mapping `options` into prefix options (the ones named
        for the class's prefix parameters) and query options (the rest)."""
        prefix_options, query_options = {}, {}
        parameters = cls.prefix_parameters
        for key, value in (options or {}).items():
            key = str(key)
            if not key:
                continue
            if key in parameters:
                prefix_options[key] = value
            else:
                query_options[key] = value
        return prefix_options, query_options

    @classmethod
    def check_prefix_options(cls, prefix_options):
        paths.check_prefix_options(cls.prefix, prefix_options)

    @classmethod
    def prefix_path(cls, prefix_options=None):
        """Returns the class's prefix with `prefix_options` filled in.

        If a prefix parameter has no value in `prefix_options`, raises
        `MissingPrefixParam`.

        """
        prefix_options = dict((str(k), v)
                              for k, v in (prefix_options or {}).items())
        cls.check_prefix_options(prefix_options)
        return paths.fill_prefix(cls.prefix, prefix_options)

    @hybridmethod
    def element_path(cls, id, prefix_options=None, query_options=None):
        """Returns the path of the resource with the given id.

        If `query_options` is not given, `prefix_options` may hold both
        prefix and query options, and is split with `split_options()`.

        """
        if query_options is None:
            prefix_options, query_options = cls.split_options(prefix_options)
        return '%s%s/%s%s%s' % (cls.prefix_path(prefix_options),
                                cls.collection_name, paths.escape_segment(id),
                                cls.format_extension,
                                paths.query_string(query_options))

    @classmethod
    def new_element_path(cls, prefix_options=None):
        """Returns the path of the template for new resources, as in
        ``/people/new.json``."""
        return '%s%s/new%s' % (cls.prefix_path(prefix_options),
                               cls.collection_name, cls.format_extension)

    @hybridmethod
    def collection_path(cls, prefix_options=None, query_options=None):
        """Returns the path of the class's collection."""
        if query_options is None:
            prefix_options, query_options = cls.split_options(prefix_options)
        return '%s%s%s%s' % (cls.prefix_path(prefix_options),
                             cls.collection_name, cls.format_extension,
                             paths.query_string(query_options))

    @classmethod
    def custom_method_collection_path(cls, method_name, options=None):
        """Returns the path of the custom method `method_name` on the class's
        collection, as in ``/people/managers.json``."""
        prefix_options, query_options = cls.split_options(options)
        return '%s%s/%s%s%s' % (cls.prefix_path(prefix_options),
                                cls.collection_name, method_name,
                                cls.format_extension,
                                paths.query_string(query_options))

    # Finding

    @classmethod
    def find(cls, scope_or_id, from_=None, params=None):
        """Finds resources of this class.

        Parameter `scope_or_id` is one of:

        * ``'all'``, for a `LazyCollection` of all the matching resources
        * ``'first'`` or ``'last'``, for the first or last of all the
          matching resources, or `None` if there are none
        * ``'one'``, for the single resource at the path `from_`
        * the id of the resource to find

        Optional parameter `params` is a mapping of the prefix options and
        query parameters to find with. Optional parameter `from_` is either
        a path to request instead of the class's collection path (if it
        contains a ``/``), or the name of a custom method of the class's
        collection to request.

        """
        if scope_or_id == 'all':
            return cls.find_every(from_, params)
        if scope_or_id == 'first':
            return cls.find_every(from_, params).first()
        if scope_or_id == 'last':
            return cls.find_every(from_, params).last()
        if scope_or_id == 'one':
            return cls.find_one(from_, params)
        return cls.find_single(scope_or_id, params)

    @classmethod
    def all(cls, from_=None, params=None):
        return cls.find('all', from_=from_, params=params)

    @classmethod
    def first(cls, from_=None, params=None):
        return cls.find('first', from_=from_, params=params)

    @classmethod
    def last(cls, from_=None, params=None):
        return cls.find('last', from_=from_, params=params)

    @classmethod
    def where(cls, **clauses):
        """Returns an undelivered `LazyCollection` of the resources matching
        the query parameters `clauses`."""
        return cls.find('all', params=clauses)

    @classmethod
    def find_every(cls, from_=None, params=None):
        params = dict((str(k), v) for k, v in (params or {}).items())
        prefix_options, query_params = cls.split_options(params)
        return cls.collection_class(resource_class=cls, from_=from_,
                                    query_params=query_params,
                                    path_params=params,
                                    prefix_options=prefix_options)

    @classmethod
    def find_one(cls, from_, params=None):
        if from_ is None:
            raise ValueError("Finding 'one' %s requires a from_ path or "
                             "custom method" % cls.__name__)
        if '/' in from_:
            path = from_ + paths.query_string(params)
            data = cls.format.decode(cls.connection().get(path,
                                                          cls.headers).body)
        else:
            data = cls.custom_get(from_, **(params or {}))
        return cls.instantiate_record(data)

    @classmethod
    def find_single(cls, id, params=None):
        prefix_options, query_options = cls.split_options(params)
        path = cls.element_path(id, prefix_options, query_options)
        data = cls.format.decode(cls.connection().get(path, cls.headers).body)
        return cls.instantiate_record(data, prefix_options)

    @hybridmethod
    def exists(cls, id, params=None):
        """Returns whether the resource with the given id exists, by making a
        ``HEAD`` request for it."""
        if id is None:
            return False
        prefix_options, query_options = cls.split_options(params)
        path = cls.element_path(id, prefix_options, query_options)
        try:
            response = cls.connection().head(path, cls.headers)
        except (errors.ResourceNotFound, errors.ResourceGone):
            return False
        return 200 <= response.code <= 206

    @classmethod
    def create(cls, **attributes):
        """Makes a new resource with the given attributes and saves it.

        The new resource is returned whether or not it was saved; check its
        `errors` to see why it wasn't.

        """
        resource = cls(attributes)
        resource.save()
        return resource

    @classmethod
    def build(cls, **attributes):
        """Makes a new unsaved resource from the remote service's template
        for new resources, updated with the given attributes."""
        prefix_options, _ = cls.split_options(attributes)
        path = cls.new_element_path(prefix_options)
        data = cls.format.decode(cls.connection().get(path, cls.headers).body)
        data = dict(formats.remove_root(data or {}))
        data.update(attributes)
        return cls(data)

    @classmethod
    def delete(cls, id, **options):
        """Deletes the resource with the given id. Keyword arguments are the
        prefix options and query parameters of the request."""
        return cls.connection().delete(cls.element_path(id, options),
                                       cls.headers)

    # Custom methods

    @classmethod
    def custom_get(cls, method_name, **options):
        """Requests the custom method `method_name` of the class's
        collection, and returns the decoded response."""
        path = cls.custom_method_collection_path(method_name, options)
        data = formats.remove_root(cls.format.decode(
            cls.connection().get(path, cls.headers).body))
        if isinstance(data, list):
            return [formats.remove_root(item) for item in data]
        return data

    @classmethod
    def custom_post(cls, method_name, body='', **options):
        path = cls.custom_method_collection_path(method_name, options)
        return cls.connection().post(path, body, cls.headers)

    @classmethod
    def custom_put(cls, method_name, body='', **options):
        path = cls.custom_method_collection_path(method_name, options)
        return cls.connection().put(path, body, cls.headers)

    @classmethod
    def custom_patch(cls, method_name, body='', **options):
        path = cls.custom_method_collection_path(method_name, options)
        return cls.connection().patch(path, body, cls.headers)

    @classmethod
    def custom_delete(cls, method_name, **options):
        path = cls.custom_method_collection_path(method_name, options)
        return cls.connection().delete(path, cls.headers)

    def custom_method_element_path(self, method_name, options=None):
        cls = type(self)
        return '%s%s/%s/%s%s%s' % (cls.prefix_path(self.prefix_options),
                                   cls.collection_name,
                                   paths.escape_segment(self.to_param()),
                                   method_name, cls.format_extension,
                                   paths.query_string(options))

    def custom_method_new_element_path(self, method_name, options=None):
        cls = type(self)
        return '%s%s/new/%s%s%s' % (cls.prefix_path(self.prefix_options),
                                    cls.collection_name, method_name,
                                    cls.format_extension,
                                    paths.query_string(options))

    def member_get(self, method_name, **options):
        """Requests the custom method `method_name` of this resource, as in
        ``GET /people/1/promote.json``, and returns the decoded response."""
        cls = type(self)
        path = self.custom_method_element_path(method_name, options)
        return cls.format.decode(cls.connection().get(path, cls.headers).body)

    def member_post(self, method_name, body=None, **options):
        """Posts to the custom method `method_name` of this resource.

        If no `body` is given, the encoded resource is sent. New resources
        post to the custom method of the new resource template, as in
        ``POST /people/new/register.json``.

        """
        cls = type(self)
        if not body:
            body = self.encode()
        if self.is_new():
            path = self.custom_method_new_element_path(method_name, options)
        else:
            path = self.custom_method_element_path(method_name, options)
        return cls.connection().post(path, body, cls.headers)

    def member_put(self, method_name, body='', **options):
        cls = type(self)
        path = self.custom_method_element_path(method_name, options)
        return cls.connection().put(path, body, cls.headers)

    def member_patch(self, method_name, body='', **options):
        cls = type(self)
        path = self.custom_method_element_path(method_name, options)
        return cls.connection().patch(path, body, cls.headers)

    def member_delete(self, method_name, **options):
        cls = type(self)
        path = self.custom_method_element_path(method_name, options)
        return cls.connection().delete(path, cls.headers)

    # Persistence

    def is_new(self):
        """Returns whether the resource has yet to be saved to the remote
        service."""
        return not self.persisted

    @element_path.instance
    def element_path(self, options=None):
        return type(self).element_path(self.to_param(),
                                       options or self.prefix_options)

    @collection_path.instance
    def collection_path(self, options=None):
        return type(self).collection_path(options or self.prefix_options)

    def save(self, validate=True):
        """Saves the resource to the remote service, creating it if it is new
        and updating it otherwise.

        Unless `validate` is false, the resource is validated first with
        `is_valid()`, and is not saved if it is invalid. If the remote
        service rejects the resource with one of the class's `remote_errors`
        (a 422 response), the response's messages are added to the
        resource's `errors`.

        Returns whether the resource was saved.

        """
        return self.with_rescue(self._save, validate)

    def _save(self, validate):
        # Clear the remote errors so they don't keep the resource invalid
        # after the attributes they were about have changed.
        self._remote_errors = None
        if validate and not self.is_valid():
            return False
        try:
            self.create_or_update()
        except type(self).remote_errors as exc:
            log.debug('%s rejected by the remote service: %s',
                      type(self).__name__, exc)
            self._remote_errors = exc
            self.load_remote_errors(exc, save_cache=True)
            return False
        return True

    def save_or_raise(self, validate=True):
        """Saves the resource like `save()`, but raises `ResourceInvalid` if
        it isn't saved."""
        if not self.save(validate):
            response = getattr(self._remote_errors, 'response', None)
            raise errors.ResourceInvalid(response, resource=self)
        return True

    def create_path(self):
        """Returns the path to post the new resource to."""
        return self.collection_path()

    def resource_path(self):
        """Returns the path of the saved resource, for updating and deleting
        it."""
        return self.element_path(self.prefix_options)

    def create_or_update(self):
        cls = type(self)
        signals.before_save.send(cls, item=self)
        if self.is_new():
            response = self._create()
        else:
            response = self._update()
        signals.after_save.send(cls, item=self)
        return response

    def _create(self):
        cls = type(self)
        signals.before_create.send(cls, item=self)
        response = cls.connection().post(self.create_path(), self.encode(),
                                         cls.headers)
        new_id = self.id_from_response(response)
        if new_id is not None:
            self.id = new_id
        self.load_attributes_from_response(response)
        self.persisted = True
        signals.after_create.send(cls, item=self)
        return response

    def _update(self):
        cls = type(self)
        signals.before_update.send(cls, item=self)
        response = cls.connection().put(self.resource_path(), self.encode(),
                                        cls.headers)
        self.load_attributes_from_response(response)
        self.persisted = True
        signals.after_update.send(cls, item=self)
        return response

    def destroy(self):
        """Deletes the resource from the remote service."""
        return self.with_rescue(self._destroy)

    def _destroy(self):
        cls = type(self)
        signals.before_destroy.send(cls, item=self)
        response = cls.connection().delete(self.resource_path(), cls.headers)
        signals.after_destroy.send(cls, item=self)
        return response

    def reload(self):
        """Replaces the resource's attributes with the ones the remote
        service has now, and returns the resource."""
        return self.with_rescue(self._reload)

    def fetch(self):
        """Requests and returns a new copy of the saved resource."""
        return type(self).find(self.to_param(), params=self.prefix_options)

    def _reload(self):
        cls = type(self)
        found = self.fetch()
        self.load(found.attributes, False, True)
        self.persisted = True
        signals.after_reload.send(cls, item=self)
        return self

    @exists.instance
    def exists(self):
        """Returns whether the saved resource still exists on the remote
        service."""
        if self.is_new():
            return False
        return type(self).exists(self.to_param(), params=self.prefix_options)

    def update_attribute(self, name, value):
        """Sets one attribute and saves the resource without validating
        it."""
        self.attributes[name] = value
        return self.save(validate=False)

    def update_attributes(self, **attributes):
        """Adds the given attributes to the resource and saves it."""
        self.load(attributes, False)
        return self.save()

    def id_from_response(self, response):
        """Returns the id at the end of the response's ``Location`` header,
        if it has one."""
        location = response.get('Location')
        if not location:
            return None
        match = ID_FROM_LOCATION.search(urlsplit(location).path)
        if match is None:
            return None
        return match.group(1)

    def load_attributes_from_response(self, response):
        if response.code in (204, 304) or 100 <= response.code < 200:
            return
        if response.get('Content-Length') == '0':
            return
        if not response.body or not response.body.strip():
            return
        self.load(type(self).format.decode(response.body), True, True)

    # Rescue handlers

    @classmethod
    def rescue_from(cls, exception_classes, handler=None):
        """Handles exceptions of the given classes raised while the class's
        resources are saved, destroyed or reloaded.

        The `handler` is called with the resource and the exception, and its
        return value is returned in place of the interrupted operation's. It
        may also be the name of a method of the resource, which is called
        with the exception. Without a `handler`, `rescue_from()` returns a
        decorator to register one with::

            >>> @Person.rescue_from(errors.ServerError)
            ... def log_and_give_up(person, exc):
            ...     log.warning('Could not save %r: %s', person, exc)
            ...     return False

        Handlers registered later are tried first.

        """
        if not isinstance(exception_classes, tuple):
            exception_classes = (exception_classes,)

        def register(handler):
            cls.rescue_handlers = (tuple(cls.rescue_handlers)
                                   + ((exception_classes, handler),))
            return handler

        if handler is None:
            return register
        return register(handler)

    @classmethod
    def handler_for_rescue(cls, exc):
        for exception_classes, handler in reversed(cls.rescue_handlers):
            if isinstance(exc, exception_classes):
                return handler
        return None

    def with_rescue(self, operation, *args):
        try:
            return operation(*args)
        except Exception as exc:
            handler = type(self).handler_for_rescue(exc)
            if handler is None:
                raise
            log.debug('Rescuing %r from %s', self, type(exc).__name__)
            if isinstance(handler, str):
                return getattr(self, handler)(exc)
            return handler(self, exc)

    # Validation

    def is_valid(self):
        """Returns whether the resource is valid.

        The resource's errors are cleared, then its required fields are
        checked and its `validate()` method is called. Any errors from the
        remote service's last rejection of the resource are added back, so
        they stay visible until the resource is saved again.

        """
        self.errors.clear()
        for attrname, field in type(self).fields.items():
            if field.required and paths.is_blank(self.attributes.get(field.api_name)):
                self.errors.add(field.api_name, "can't be blank")
        self.validate()
        if self._remote_errors is not None:
            self.load_remote_errors(self._remote_errors, save_cache=True)
        return self.errors.empty()

    def validate(self):
        """Checks the resource's attributes, adding a message to `errors`
        for each problem.

        This implementation does nothing. Override this method to add your
        own validations.

        """
        pass

    def load_remote_errors(self, remote_errors, save_cache=False):
        """Adds the messages in the body of the rejected response of the
        exception `remote_errors` to the resource's `errors`."""
        response = getattr(remote_errors, 'response', None)
        body = getattr(response, 'body', None)
        parser = type(self).errors_parser(body)
        self.errors.load(parser.messages(), save_cache)

    # Encoding

    def to_dict(self):
        """Returns the resource's attributes as a dictionary, with nested
        resources as dictionaries too."""
        data = {}
        for key, value in self.attributes.items():
            data[key] = encode_value(value)
        for field in type(self).fields.values():
            value = data.get(field.api_name)
            if value is not None:
                data[field.api_name] = field.encode(value)
        return data

    def to_json(self, **options):
        cls = type(self)
        if cls.include_root_in_json:
            options.setdefault('root', cls.element_name)
        return formats.json_format.encode(self.to_dict(), **options)

    def to_xml(self, **options):
        options.setdefault('root', type(self).element_name)
        return formats.xml_format.encode(self.to_dict(), **options)

    def encode(self, **options):
        """Encodes the resource in its class's format."""
        cls = type(self)
        method = getattr(self, 'to_%s' % cls.format.extension, None)
        if method is not None:
            return method(**options)
        return cls.format.encode(self.to_dict(), root=cls.element_name,
                                 **options)

    # Copying and comparing

    def clone(self):
        """Returns a new unsaved resource with copies of this resource's
        attributes, except its id."""
        cls = type(self)
        attributes = dict((key, copy.deepcopy(value))
                          for key, value in self.attributes.items()
                          if key != cls.primary_key)
        resource = cls()
        resource.attributes.update(attributes)
        resource.prefix_options = dict(self.prefix_options)
        return resource

    def dup(self):
        """Returns a shallow copy of the resource, including its id and
        whether it is persisted."""
        cls = type(self)
        resource = cls(persisted=self.persisted)
        resource.attributes.update(self.attributes)
        resource.prefix_options = dict(self.prefix_options)
        return resource

    def __eq__(self, other):
        """Returns whether two resources are the same remote resource.

        Resources are the same if they are of the same class and have been
        saved with the same id and prefix options. New resources are equal
        only to themselves.

        """
        if other is self:
            return True
        if type(other) is not type(self):
            return False
        if self.is_new() or other.is_new():
            return False
        return (self.id == other.id
                and self.prefix_options == other.prefix_options)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        if self.id is None:
            return id(self)
        return hash(paths.to_param(self.id))

    def __repr__(self):
        return '<%s %s %r>' % (type(self).__name__,
                               'new' if self.is_new() else self.to_param(),
                               self.attributes)


def encode_value(value):
    if isinstance(value, Resource):
        return value.to_dict()
    if isinstance(value, list):
        return [encode_value(item) for item in value]
    if isinstance(value, dict):
        return dict((key, encode_value(item)) for key, item in value.items())
    return value
