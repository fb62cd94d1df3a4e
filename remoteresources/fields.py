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

Fields are class attributes for `Resource` subclasses that declare the
known attributes of a resource and give them typed accessors.

A resource keeps all its attribute values in its `attributes` dictionary, as
they were loaded from the remote service or set by your code. A field reads
its value out of that dictionary and converts it to the field's type::

    >>> class Person(Resource):
    ...     name     = fields.String()
    ...     age      = fields.Integer()
    ...     birthday = fields.Date()

Attributes with no field are still available through `Resource.get()` and
`Resource.set()`.

The `remoteresources.fields` module also provides the `Property` base class
for other declarative class attributes, such as the associations in
`remoteresources.associations`.

"""

from datetime import date, datetime, timedelta, timezone
import decimal
import time

from remoteresources import formats


class Property(object):

    """An attribute that can be installed declaratively on a `Resource` to
    provide attribute access or loading behavior.

    The primary kinds of `Property` objects are `Field` (and its subclasses)
    and the association properties.

    """

    def install(self, attrname, cls):
        """Signals to the `Property` that it has been installed on the given
        class as an attribute with the given name.

        This implementation does nothing. Override this method to customize
        the behavior to install an attribute on Resource classes where your
        property is declared.

        """
        pass


class Field(Property):

    """A property for reading and writing one value in a resource's
    attributes.

    Use a `Field` instance directly for attributes that can be the same type
    as the values the remote service sends; that is, strings, numbers, and
    boolean values. If your attribute does need converted, use one of the
    `Field` subclasses from this module, or override the `decode()` and
    `encode()` methods in a new subclass of `Field`.

    """

    type_name = None

    def __init__(self, api_name=None, default=None, required=False):
        """Sets the field's attribute key, default value and whether a value
        is required.

        Optional parameter `api_name` is the key of this field's value in the
        resource's attributes. If not given, the attribute name of the field
        when its class was defined is used.

        Optional parameter `default` is the value to use for this attribute
        when the resource's attributes don't contain one. `default` can be a
        value or callable function. If `default` is a callable function, it is
        called with the resource and should return the default value of the
        attribute.

        Optional parameter `required` marks the field as one that must have a
        value for the resource to be valid.

        """
        self.api_name = api_name
        self.default = default
        self.required = required

    def install(self, attrname, cls):
        self.attrname = attrname
        if self.api_name is None:
            self.api_name = attrname
        self.of_cls = cls

    def __get__(self, obj, cls):
        """Returns the field's value on the given resource, or the field's
        default value if the resource has no value for the field."""
        if obj is None:
            # Yield the real field instance when gotten through the class.
            return self

        try:
            value = obj.attributes[self.api_name]
        except KeyError:
            if callable(self.default):
                return self.default(obj)
            return self.default
        if value is None:
            return None
        return self.decode(value)

    def __set__(self, obj, value):
        obj.attributes[self.api_name] = value

    def __delete__(self, obj):
        obj.attributes.pop(self.api_name, None)

    def decode(self, value):
        """Decodes an attribute value into the field's type.

        This implementation returns the `value` parameter unchanged.

        """
        return value

    def encode(self, value):
        """Encodes a field value for sending to the remote service.

        This implementation returns the `value` parameter unchanged.

        """
        return value


class String(Field):

    type_name = 'string'

    def decode(self, value):
        return str(value)


class Integer(Field):

    type_name = 'integer'

    def decode(self, value):
        try:
            return int(value)
        except (TypeError, ValueError):
            raise TypeError('Value to decode %r is not an integer' % (value,))


class Float(Field):

    type_name = 'float'

    def decode(self, value):
        try:
            return float(value)
        except (TypeError, ValueError):
            raise TypeError('Value to decode %r is not a number' % (value,))


class Decimal(Field):

    type_name = 'decimal'

    def decode(self, value):
        try:
            return decimal.Decimal(str(value))
        except decimal.InvalidOperation:
            raise TypeError('Value to decode %r is not a decimal' % (value,))

    def encode(self, value):
        return str(value)


class Boolean(Field):

    type_name = 'boolean'

    truths = ('true', 't', '1', 'yes')

    def decode(self, value):
        if isinstance(value, str):
            return value.strip().lower() in self.truths
        return bool(value)


class Datetime(Field):

    """A field representing a timestamp."""

    type_name = 'datetime'

    dateformat = "%Y-%m-%dT%H:%M:%SZ"
    utc = timezone(timedelta(0))

    def __init__(self, dateformat=None, **kwargs):
        super(Datetime, self).__init__(**kwargs)
        if dateformat is not None:
            self.dateformat = dateformat

    def decode(self, value):
        """Decodes a timestamp string into a Python `datetime` instance.

        Timestamp strings should be of the format ``YYYY-MM-DDTHH:MM:SSZ``,
        or some other ISO 8601 timestamp. Timestamps in the field's format
        will have UTC tzinfo.

        """
        if isinstance(value, datetime):
            return value
        try:
            return datetime(*(time.strptime(value, self.dateformat))[0:6],
                            tzinfo=Datetime.utc)
        except (TypeError, ValueError):
            pass
        try:
            return formats.parse_datetime(value)
        except (AttributeError, TypeError, ValueError):
            raise TypeError('Value to decode %r is not a valid date time stamp' % (value,))

    def encode(self, value):
        """Encodes a Python `datetime` instance into a timestamp string of
        the format ``YYYY-MM-DDTHH:MM:SSZ``."""
        if not isinstance(value, datetime):
            return value
        if value.tzinfo is not None:
            value = value.astimezone(Datetime.utc)
        return value.replace(microsecond=0).strftime(self.dateformat)


class Date(Field):

    type_name = 'date'

    def decode(self, value):
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value))
        except ValueError:
            raise TypeError('Value to decode %r is not a valid date' % (value,))

    def encode(self, value):
        if isinstance(value, date):
            return value.isoformat()
        return value


field_types = {
    'string':    String,
    'text':      String,
    'integer':   Integer,
    'float':     Float,
    'decimal':   Decimal,
    'datetime':  Datetime,
    'timestamp': Datetime,
    'time':      Datetime,
    'date':      Date,
    'binary':    String,
    'boolean':   Boolean,
}


def for_type(type_name, **kwargs):
    """Returns a new field for a schema attribute of the given type.

    If `type_name` isn't one of the known attribute types, raises
    `ValueError`.

    """
    try:
        field_class = field_types[str(type_name)]
    except KeyError:
        raise ValueError('Unknown attribute type %r; use one of %s'
                         % (type_name, ', '.join(sorted(field_types))))
    return field_class(**kwargs)
