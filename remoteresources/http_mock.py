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

A stand-in for the `httplib2.Http` user agent, for testing code that uses
`Resource` classes without a remote service.

Register the responses to expect, then enable the mock so connections send
their requests to it::

    >>> HttpMock.respond_to().get('/people/1.json',
    ...                           body='{"person": {"id": 1, "name": "Matz"}}')
    >>> HttpMock.enable()
    >>> Person.find(1).name
    'Matz'
    >>> HttpMock.requests
    [<GET: /people/1.json [{'Accept': 'application/json'}] (None)>]

Requests with no registered response raise `InvalidRequestError`.

"""

import logging
from urllib.parse import urlsplit

import httplib2

from remoteresources.connection import Connection, HTTP_FORMAT_HEADER_NAMES


log = logging.getLogger('remoteresources.http_mock')

BODILESS_CODES = (204, 304)


class InvalidRequestError(Exception):

    """Raised when an `HttpMock` receives a request it has no response for."""

    def __init__(self, request, responses):
        self.request = request
        self.responses = list(responses)
        super(InvalidRequestError, self).__init__(str(self))

    def __str__(self):
        recorded = ', '.join('%s => %s' % (request, response)
                             for request, response in self.responses)
        return ('Could not find a response recorded for %s - Responses '
                'recorded are: [%s]' % (self.request, recorded))


def strip_query(path):
    return path.split('?', 1)[0]


class Request(object):

    """A request an `HttpMock` expects or received.

    A received request matches an expected one with the same method, path
    and headers. If the expected request doesn't name the format header for
    its method (such as ``Accept`` for ``GET``), any format header matches.
    Expected requests with `omit_query_in_path` set match received requests
    with any query string.

    """

    def __init__(self, method, path, body=None, headers=None,
                 omit_query_in_path=False):
        self.method = method.upper()
        self.path = path
        self.body = body
        self.headers = dict(headers or {})
        self.omit_query_in_path = omit_query_in_path

    def same_path(self, other):
        if self.omit_query_in_path or other.omit_query_in_path:
            return strip_query(self.path) == strip_query(other.path)
        return self.path == other.path

    def lowered_headers(self):
        return dict((name.lower(), value)
                    for name, value in self.headers.items())

    def headers_match(self, other):
        mine, theirs = self.lowered_headers(), other.lowered_headers()
        format_header = HTTP_FORMAT_HEADER_NAMES.get(self.method, '').lower()
        if format_header and format_header not in mine:
            theirs.pop(format_header, None)
        return mine == theirs

    def __eq__(self, other):
        if not isinstance(other, Request):
            return NotImplemented
        return (self.method == other.method and self.same_path(other)
                and self.headers_match(other))

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((self.method, strip_query(self.path)))

    def __str__(self):
        return '<%s: %s [%s] (%s)>' % (self.method, self.path, self.headers,
                                       self.body)

    __repr__ = __str__


class Response(object):

    """A response an `HttpMock` gives to a matching request.

    Parameter `status` is the response code, optionally followed by the
    response message, as in ``'404 Not Found'``. Parameter `body` may also
    be a function, which is called with the received `Request` to make the
    response body.

    """

    def __init__(self, body=None, status=200, headers=None):
        self.body = body
        status = str(status)
        self.code = int(status[:3])
        self.message = status[3:].strip()
        self.headers = dict(headers or {})

    def body_for(self, request):
        if 100 <= self.code < 200 or self.code in BODILESS_CODES:
            return None
        if callable(self.body):
            return self.body(request)
        return self.body

    def to_httplib2(self, request):
        """Returns the `httplib2.Response` and content to answer `request`
        with, as `httplib2.Http.request()` does."""
        body = self.body_for(request)
        if isinstance(body, str):
            body = body.encode('utf-8')
        info = dict(self.headers)
        info['status'] = str(self.code)
        info['content-length'] = str(len(body)) if body is not None else '0'
        response = httplib2.Response(info)
        response.reason = self.message
        return response, body or b''

    def __str__(self):
        return '<Response %d %s (%s)>' % (self.code, self.message,
                                          '<callable>' if callable(self.body)
                                          else self.body)

    __repr__ = __str__


class Responder(object):

    """Registers expected requests and their responses with `HttpMock`.

    Each method registers a response for requests with that HTTP method::

        >>> HttpMock.respond_to().post('/people.json', status=201,
        ...                            response_headers={'Location': '/people/5.json'})

    Registering a response for a request that already has one replaces it.

    """

    def __init__(self, responses):
        self.responses = responses

    def register(self, method, path, request_headers=None, body=None,
                 status=200, response_headers=None, omit_query_in_path=False):
        request = Request(method, path, headers=request_headers,
                          omit_query_in_path=omit_query_in_path)
        self.responses[:] = [(known, response)
                             for known, response in self.responses
                             if known != request]
        self.responses.append((request, Response(body, status,
                                                 response_headers)))
        return self

    def get(self, path, request_headers=None, body=None, status=200,
            response_headers=None, omit_query_in_path=False):
        return self.register('GET', path, request_headers, body, status,
                             response_headers, omit_query_in_path)

    def post(self, path, request_headers=None, body=None, status=200,
             response_headers=None, omit_query_in_path=False):
        return self.register('POST', path, request_headers, body, status,
                             response_headers, omit_query_in_path)

    def put(self, path, request_headers=None, body=None, status=200,
            response_headers=None, omit_query_in_path=False):
        return self.register('PUT', path, request_headers, body, status,
                             response_headers, omit_query_in_path)

    def patch(self, path, request_headers=None, body=None, status=200,
              response_headers=None, omit_query_in_path=False):
        return self.register('PATCH', path, request_headers, body, status,
                             response_headers, omit_query_in_path)

    def delete(self, path, request_headers=None, body=None, status=200,
               response_headers=None, omit_query_in_path=False):
        return self.register('DELETE', path, request_headers, body, status,
                             response_headers, omit_query_in_path)

    def head(self, path, request_headers=None, body=None, status=200,
             response_headers=None, omit_query_in_path=False):
        return self.register('HEAD', path, request_headers, body, status,
                             response_headers, omit_query_in_path)


class HttpMock(object):

    """A user agent that answers requests with registered responses instead
    of sending them.

    `HttpMock` accepts the same constructor arguments as `httplib2.Http`,
    and ignores them. Registered responses and received requests are kept on
    the class, shared by all instances.

    """

    requests = []
    responses = []
    _real_http_class = None

    def __init__(self, **kwargs):
        self.options = kwargs
        self.follow_redirects = True
        self.certificates = []

    def add_certificate(self, key, cert, domain, password=None):
        self.certificates.append((key, cert, domain, password))

    def request(self, uri, method='GET', body=None, headers=None, **kwargs):
        """Records the request, and returns the registered response to it as
        an `httplib2.Response` and its content."""
        site = urlsplit(uri)
        path = site.path + ('?' + site.query if site.query else '')
        request = Request(method, path, body, headers)
        cls = type(self)
        cls.requests.append(request)
        for known, response in cls.responses:
            if known == request:
                log.debug('Answering %s with %s', request, response)
                return response.to_httplib2(request)
        raise InvalidRequestError(request, cls.responses)

    @classmethod
    def respond_to(cls, pairs=None, reset=True):
        """Returns a `Responder` to register responses with.

        Optional parameter `pairs` is a mapping (or a list of pairs) of
        `Request` instances to the `Response` instances to give them. Unless
        `reset` is false, all responses and requests already recorded are
        discarded first.

        """
        if reset:
            cls.reset()
        if pairs is not None:
            if hasattr(pairs, 'items'):
                pairs = pairs.items()
            for request, response in pairs:
                cls.responses[:] = [(known, known_response)
                                    for known, known_response in cls.responses
                                    if known != request]
                cls.responses.append((request, response))
        return Responder(cls.responses)

    @classmethod
    def reset(cls):
        """Discards all registered responses and received requests."""
        del cls.requests[:]
        del cls.responses[:]

    @classmethod
    def enable(cls):
        """Makes new connections send their requests to `HttpMock`.

        Connections made before the mock was enabled keep their user agent;
        pass ``refresh=True`` to `Resource.connection()` to replace them.

        """
        if Connection.http_class is not cls:
            cls._real_http_class = Connection.http_class
            Connection.http_class = cls

    @classmethod
    def disable(cls):
        """Makes new connections use the real user agent again."""
        if cls._real_http_class is not None:
            Connection.http_class = cls._real_http_class
            cls._real_http_class = None

    @classmethod
    def is_enabled(cls):
        return Connection.http_class is cls
