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

Validation errors for resources.

Each resource has an `Errors` instance as its `errors` attribute, holding
the messages from both local validation (see `Resource.is_valid()`) and the
remote service's 422 responses. Error response bodies are read with an
`ErrorsParser` for the resource's format.

"""

from collections import OrderedDict
import logging
import warnings
import xml.etree.ElementTree as ElementTree

import inflection
import simplejson as json

from remoteresources import formats


log = logging.getLogger('remoteresources.validations')


class Errors(object):

    """The validation error messages of a resource, by attribute.

    Messages that aren't about any one attribute are kept under the
    attribute name ``base``. Iterating over an `Errors` instance yields
    ``(attribute, message)`` pairs.

    """

    def __init__(self, base):
        self.base = base
        self.messages = OrderedDict()

    def add(self, attribute, message='is invalid'):
        self.messages.setdefault(str(attribute), []).append(message)

    def __getitem__(self, attribute):
        return list(self.messages.get(attribute, ()))

    def __len__(self):
        return sum(len(messages) for messages in self.messages.values())

    size = __len__

    def __iter__(self):
        for attribute, messages in self.messages.items():
            for message in messages:
                yield attribute, message

    def __contains__(self, attribute):
        return bool(self.messages.get(attribute))

    include = __contains__

    def __bool__(self):
        return len(self) > 0

    def empty(self):
        return len(self) == 0

    def clear(self):
        self.messages.clear()

    def full_message(self, attribute, message):
        if attribute == 'base':
            return message
        return '%s %s' % (inflection.humanize(attribute), message)

    def full_messages(self):
        return [self.full_message(attribute, message)
                for attribute, message in self]

    def full_messages_for(self, attribute):
        return [self.full_message(attribute, message)
                for message in self[attribute]]

    def to_dict(self, full_messages=False):
        if full_messages:
            return dict((attribute, self.full_messages_for(attribute))
                        for attribute in self.messages)
        return dict((attribute, list(messages))
                    for attribute, messages in self.messages.items())

    def from_array(self, messages, save_cache=False):
        """Adds the full error messages in `messages`.

        Each message is attributed to the known attribute of the resource
        whose humanized name it starts with, trying the longest names first,
        or to ``base`` if it starts with none of them.

        Unless `save_cache` is true, any existing messages are cleared first.

        """
        if not save_cache:
            self.clear()
        humanized = dict((inflection.humanize(attribute), attribute)
                         for attribute in self.base.known_attributes())
        names = sorted(humanized, key=len, reverse=True)
        for message in messages:
            for name in names:
                if message.startswith(name + ' '):
                    self.add(humanized[name], message[len(name) + 1:])
                    break
            else:
                self.add('base', message)

    def from_dict(self, messages, save_cache=False):
        """Adds the error messages in the mapping `messages` of attribute
        names to messages.

        Messages for attributes the resource doesn't know are added to
        ``base`` as full messages.

        Unless `save_cache` is true, any existing messages are cleared first.

        """
        if not save_cache:
            self.clear()
        known = self.base.known_attributes()
        for attribute, attribute_messages in messages.items():
            if isinstance(attribute_messages, str):
                attribute_messages = [attribute_messages]
            for message in attribute_messages:
                if attribute in known or attribute == 'base':
                    self.add(attribute, message)
                else:
                    self.add('base', '%s %s'
                             % (inflection.humanize(attribute), message))

    def load(self, messages, save_cache=False):
        """Adds error messages as parsed by an `ErrorsParser`, either a list
        of full messages or a mapping of attribute names to messages."""
        if isinstance(messages, list):
            self.from_array(messages, save_cache)
        else:
            self.from_dict(messages or {}, save_cache)

    def from_json(self, body, save_cache=False):
        """Adds the error messages in the JSON error response `body`."""
        self.load(JsonErrorsParser(body).messages(), save_cache)

    def from_xml(self, body, save_cache=False):
        """Adds the error messages in the XML error response `body`."""
        self.load(XmlErrorsParser(body).messages(), save_cache)

    def __repr__(self):
        return '<Errors %r>' % (self.to_dict(),)


class ErrorsParser(object):

    """Reads the error messages out of the body of an error response.

    Subclass `ErrorsParser` and set it as a resource class's
    `errors_parser` to read error responses your remote service formats
    differently.

    """

    def __init__(self, body):
        self.body = formats.to_text(body)

    def messages(self):
        """Returns the messages in the response body, either as a list of
        full messages or a mapping of attribute names to lists of
        messages."""
        raise NotImplementedError


class JsonErrorsParser(ErrorsParser):

    """Reads JSON error responses.

    The current response shape is an object with an ``errors`` key holding
    an object of attribute names to lists of messages. Bodies with a list of
    full messages under ``errors``, or with attribute messages at the top
    level, are still read, but are deprecated.

    """

    def messages(self):
        try:
            decoded = json.loads(self.body) or {}
        except (TypeError, ValueError):
            log.debug('Could not decode error response %r', self.body)
            decoded = {}
        if not isinstance(decoded, (dict, list)):
            decoded = {}

        if isinstance(decoded, list):
            warnings.warn('Error responses that are lists of messages are '
                          'deprecated; wrap them in an "errors" object',
                          DeprecationWarning, stacklevel=2)
            return decoded

        if 'errors' in decoded or not decoded:
            errors = decoded.get('errors') or {}
            if isinstance(errors, list):
                warnings.warn('Lists of messages in "errors" are deprecated; '
                              'send an object of attribute names to '
                              'messages instead', DeprecationWarning,
                              stacklevel=2)
            return errors

        warnings.warn('Error responses without an "errors" key are '
                      'deprecated', DeprecationWarning, stacklevel=2)
        return decoded


class XmlErrorsParser(ErrorsParser):

    """Reads XML error responses of the form
    ``<errors><error>Name can't be blank</error></errors>``."""

    def messages(self):
        try:
            root = ElementTree.fromstring((self.body or '').encode('utf-8'))
        except ElementTree.ParseError:
            log.debug('Could not decode error response %r', self.body)
            return []
        return [element.text or '' for element in root.iter('error')]


errors_parsers = {
    'json': JsonErrorsParser,
    'xml':  XmlErrorsParser,
}


def parser_for(format):
    """Returns the `ErrorsParser` class for `format`."""
    return errors_parsers.get(format.extension, JsonErrorsParser)
