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

Formats encode request bodies for and decode response bodies from the
remote service.

A format is an object with an `extension` (used in resource paths, as in
``/people/1.json``), a `mime_type` (sent in ``Accept`` and ``Content-Type``
headers), and `encode()` and `decode()` methods. The `json` and `xml`
formats are provided; use `lookup()` to find one by name.

"""

from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
import xml.etree.ElementTree as ElementTree

import inflection
import simplejson as json


class DecodeError(ValueError):
    """An exception raised when a response body can't be decoded in the
    expected format."""
    pass


def remove_root(data):
    """Returns the value of `data` if it is a mapping of a single key to a
    mapping or list, or `data` unchanged otherwise."""
    if isinstance(data, Mapping) and len(data) == 1:
        value = next(iter(data.values()))
        if isinstance(value, (Mapping, list)):
            return value
    return data


def to_text(content):
    """Returns the response body `content` as a string.

    Undecodable bytes are replaced with the Unicode replacement character
    rather than raising an error.

    """
    if isinstance(content, bytes):
        return content.decode('utf-8', 'replace')
    return content


def encode_default(value):
    """Encodes values the JSON encoder doesn't know how to, such as nested
    resources and timestamps."""
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError('%r is not JSON serializable' % (value,))


class Format(object):

    """A strategy for encoding and decoding remote resources.

    Override `encode()` and `decode()` in a subclass to support another
    format, and register an instance of it in `formats.registry` to make it
    available by name.

    """

    extension = None
    mime_type = None

    def encode(self, data, root=None, **options):
        raise NotImplementedError

    def decode(self, content):
        raise NotImplementedError

    def __repr__(self):
        return '<%s %s>' % (type(self).__name__, self.mime_type)


class JsonFormat(Format):

    extension = 'json'
    mime_type = 'application/json'

    def encode(self, data, root=None, **options):
        """Encodes `data` as a JSON string, wrapped in an object with the
        single key `root` if given."""
        if root is not None:
            data = {root: data}
        options.setdefault('default', encode_default)
        return json.dumps(data, **options)

    def decode(self, content):
        """Decodes the JSON string `content`, removing any single-key root
        object around the data.

        Empty content decodes to `None`.

        """
        content = to_text(content)
        if content is None or not content.strip():
            return None
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise DecodeError(str(exc))
        return remove_root(data)


class XmlFormat(Format):

    """The XML format.

    Documents use dashed element names and note the types of values other
    than strings in ``type`` attributes, as in::

        <person>
          <first-name>Matz</first-name>
          <age type="integer">48</age>
          <tags type="array"><tag>ruby</tag></tags>
          <nickname nil="true"/>
        </person>

    """

    extension = 'xml'
    mime_type = 'application/xml'

    declaration = '<?xml version="1.0" encoding="UTF-8"?>\n'

    def encode(self, data, root=None, **options):
        if root is None:
            if isinstance(data, Mapping) and len(data) == 1:
                root, data = next(iter(data.items()))
            elif isinstance(data, (list, tuple)):
                root = 'records'
            else:
                root = 'hash'
        element = self.build_element(root, data)
        return self.declaration + ElementTree.tostring(element,
                                                       encoding='unicode')

    def build_element(self, name, value):
        element = ElementTree.Element(inflection.dasherize(str(name)))
        if hasattr(value, 'to_dict'):
            value = value.to_dict()

        if value is None:
            element.set('nil', 'true')
        elif isinstance(value, Mapping):
            for key, item in value.items():
                element.append(self.build_element(key, item))
        elif isinstance(value, (list, tuple)):
            element.set('type', 'array')
            child_name = inflection.singularize(str(name))
            for item in value:
                element.append(self.build_element(child_name, item))
        elif isinstance(value, bool):
            element.set('type', 'boolean')
            element.text = 'true' if value else 'false'
        elif isinstance(value, int):
            element.set('type', 'integer')
            element.text = str(value)
        elif isinstance(value, float):
            element.set('type', 'float')
            element.text = repr(value)
        elif isinstance(value, Decimal):
            element.set('type', 'decimal')
            element.text = str(value)
        elif isinstance(value, datetime):
            element.set('type', 'datetime')
            element.text = value.isoformat()
        elif isinstance(value, date):
            element.set('type', 'date')
            element.text = value.isoformat()
        else:
            element.text = str(value)
        return element

    def decode(self, content):
        """Decodes the XML document `content` into dictionaries and lists,
        removing the root element."""
        content = to_text(content)
        if content is None or not content.strip():
            return None
        try:
            root = ElementTree.fromstring(content.encode('utf-8'))
        except ElementTree.ParseError as exc:
            raise DecodeError(str(exc))
        return remove_root({self.key_for(root): self.parse_element(root)})

    def key_for(self, element):
        return element.tag.replace('-', '_')

    def parse_element(self, element):
        kind = element.get('type')
        if element.get('nil') == 'true':
            return None

        children = list(element)
        if kind == 'array':
            return [self.parse_element(child) for child in children]
        if children:
            data = {}
            for child in children:
                key = self.key_for(child)
                value = self.parse_element(child)
                if key in data:
                    # Repeated elements collect into a list.
                    if not isinstance(data[key], list):
                        data[key] = [data[key]]
                    data[key].append(value)
                else:
                    data[key] = value
            return data

        text = element.text
        if text is None or (not text.strip() and kind is None):
            return None
        return self.cast(text.strip(), kind)

    def cast(self, text, kind):
        try:
            if kind == 'integer':
                return int(text)
            if kind == 'float':
                return float(text)
            if kind == 'decimal':
                return Decimal(text)
            if kind == 'boolean':
                return text in ('true', '1')
            if kind == 'datetime':
                return parse_datetime(text)
            if kind == 'date':
                return date.fromisoformat(text)
        except (ValueError, InvalidOperation) as exc:
            raise DecodeError('Bad %s value %r: %s' % (kind, text, exc))
        return text


def parse_datetime(text):
    """Parses an ISO 8601 timestamp, including ones with a ``Z`` zone."""
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    return datetime.fromisoformat(text)


json_format = JsonFormat()
xml_format = XmlFormat()

registry = {
    'json': json_format,
    'xml': xml_format,
}


def lookup(name_or_format):
    """Returns the format with the given name, or `name_or_format` itself if
    it is already a format.

    If there is no format by that name, raises `KeyError`.

    """
    if isinstance(name_or_format, Format):
        return name_or_format
    return registry[str(name_or_format).lower()]
