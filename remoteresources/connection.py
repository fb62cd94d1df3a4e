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

A `Connection` performs HTTP requests against the remote service on behalf
of a `Resource` class.

Connections add the authorization and format headers to every request, turn
error responses into the exceptions in `remoteresources.errors`, and send
the `signals.request` signal for every exchange. The HTTP itself is done by
an `httplib2.Http` instance.

"""

import base64
import hashlib
import logging
import os
import re
import socket
import ssl
import time
from urllib.parse import unquote, urlsplit

import httplib2

from remoteresources import errors, formats, signals


log = logging.getLogger('remoteresources.connection')

HTTP_FORMAT_HEADER_NAMES = {
    'GET':    'Accept',
    'PUT':    'Content-Type',
    'POST':   'Content-Type',
    'PATCH':  'Content-Type',
    'DELETE': 'Accept',
    'HEAD':   'Accept',
}

AUTH_TYPES = ('basic', 'digest', 'bearer')

DEFAULT_PORTS = {'http': 80, 'https': 443}

# The SOCKS proxy type code httplib2 uses for plain HTTP proxies.
PROXY_TYPE_HTTP = 3

CHALLENGE_PARAM = re.compile(r'(\w+)="(.*?)"')

UNQUOTED_DIGEST_PARAMS = ('qop', 'nc')


class Request(object):

    """An HTTP request as sent by a `Connection`."""

    def __init__(self, method, path, body=None, headers=None):
        self.method = method.upper()
        self.path = path
        self.body = body
        self.headers = dict(headers or {})

    def __str__(self):
        return '<%s: %s [%s] (%s)>' % (self.method, self.path, self.headers,
                                       self.body)

    __repr__ = __str__


class Response(object):

    """An HTTP response as returned by a `Connection`.

    Header names are case insensitive, so ``response['Location']`` and
    ``response['location']`` are equivalent.

    """

    def __init__(self, code, message='', headers=None, body=''):
        self.code = int(code)
        self.message = message or ''
        self.headers = dict((k.lower(), v) for k, v in (headers or {}).items())
        self.body = body

    @classmethod
    def from_httplib2(cls, response, content):
        """Makes a `Response` from the response and content returned by
        `httplib2.Http.request()`."""
        headers = dict((k, v) for k, v in response.items() if k != 'status')
        return cls(response.status, getattr(response, 'reason', ''), headers,
                   formats.to_text(content))

    def __getitem__(self, name):
        return self.headers[name.lower()]

    def __contains__(self, name):
        return name.lower() in self.headers

    def get(self, name, default=None):
        return self.headers.get(name.lower(), default)

    def is_success(self):
        return 200 <= self.code < 300

    def __repr__(self):
        return '<Response %d %s>' % (self.code, self.message)


def handle_response(response, request=None):
    """Returns `response` if it is a success, or raises the exception for its
    status code otherwise."""
    code = response.code
    if code in (301, 302, 303, 307):
        raise errors.Redirection(response, request=request)
    if 200 <= code < 400:
        return response
    if code == 400:
        raise errors.BadRequest(response, request=request)
    if code == 401:
        raise errors.UnauthorizedAccess(response, request=request)
    if code == 403:
        raise errors.ForbiddenAccess(response, request=request)
    if code == 404:
        raise errors.ResourceNotFound(response, request=request)
    if code == 405:
        raise errors.MethodNotAllowed(response, request=request)
    if code == 409:
        raise errors.ResourceConflict(response, request=request)
    if code == 410:
        raise errors.ResourceGone(response, request=request)
    if code == 422:
        raise errors.ResourceInvalid(response, request=request)
    if code == 451:
        raise errors.UnavailableForLegalReasons(response, request=request)
    if 401 <= code < 500:
        raise errors.ClientError(response, request=request)
    if 500 <= code < 600:
        raise errors.ServerError(response, request=request)
    raise errors.ConnectionError(response, 'Unknown response code: %d' % code,
                                 request=request)


class Connection(object):

    """A connection to a remote service at the URL `site`.

    Connections are configured once, when they're made. `Resource` classes
    make a new connection when any of their connection settings change,
    rather than changing the settings of a connection they already have.

    Optional parameters:

    * `format`, the format (or name of the format) of request and response
      bodies, by default JSON
    * `proxy`, the URL of an HTTP proxy to use
    * `user` and `password`, the credentials for basic or digest
      authentication; if not given, any credentials in the `site` URL are
      used
    * `bearer_token`, the token for bearer authentication
    * `auth_type`, one of ``basic`` (the default), ``digest`` or ``bearer``
    * `timeout`, `open_timeout` and `read_timeout`, in seconds
    * `ssl_options`, a dictionary of ``ca_file``, ``verify``, ``cert_file``,
      ``key_file``, ``key_password``, ``tls_minimum_version`` and
      ``tls_maximum_version`` settings

    """

    http_class = httplib2.Http

    def __init__(self, site, format=formats.json_format, proxy=None,
                 user=None, password=None, bearer_token=None, auth_type=None,
                 timeout=None, open_timeout=None, read_timeout=None,
                 ssl_options=None):
        if not site:
            raise ValueError('Missing site URI')
        self.site = urlsplit(site)
        self.format = formats.lookup(format)
        self.proxy = urlsplit(proxy) if proxy else None

        self.user = user
        if self.user is None and self.site.username is not None:
            self.user = unquote(self.site.username)
        self.password = password
        if self.password is None and self.site.password is not None:
            self.password = unquote(self.site.password)
        self.bearer_token = bearer_token
        self.auth_type = self.legitimize_auth_type(auth_type)

        self.timeout = timeout
        self.open_timeout = open_timeout
        self.read_timeout = read_timeout
        self.ssl_options = dict(ssl_options or {})

        self._http = None
        self._challenge = ''

    def legitimize_auth_type(self, auth_type):
        if auth_type is None:
            return 'bearer' if self.bearer_token else 'basic'
        auth_type = str(auth_type).lower()
        if auth_type not in AUTH_TYPES:
            return 'basic'
        return auth_type

    @property
    def site_root(self):
        """The scheme and host of the site, to which request paths are
        appended."""
        host = self.site.hostname or ''
        if self.site.port is not None:
            host = '%s:%d' % (host, self.site.port)
        return '%s://%s' % (self.site.scheme, host)

    def request_uri(self, path):
        """Returns the full URL of `path`, with the port always included."""
        port = self.site.port or DEFAULT_PORTS.get(self.site.scheme)
        return '%s://%s:%s%s' % (self.site.scheme, self.site.hostname, port,
                                 path)

    @property
    def socket_timeout(self):
        # httplib2 has a single socket timeout for connecting and reading.
        timeouts = [t for t in (self.open_timeout, self.read_timeout,
                                self.timeout) if t is not None]
        if not timeouts:
            return None
        return max(timeouts)

    @property
    def http(self):
        """The `httplib2.Http` user agent this connection sends requests
        with."""
        if self._http is None:
            self._http = self.new_http()
        return self._http

    @http.setter
    def http(self, http):
        self._http = http

    def new_http(self):
        kwargs = {}
        if self.socket_timeout is not None:
            kwargs['timeout'] = self.socket_timeout
        if self.proxy is not None:
            kwargs['proxy_info'] = httplib2.ProxyInfo(
                PROXY_TYPE_HTTP,
                self.proxy.hostname,
                self.proxy.port or DEFAULT_PORTS.get(self.proxy.scheme, 80),
                proxy_user=unquote(self.proxy.username) if self.proxy.username else None,
                proxy_pass=unquote(self.proxy.password) if self.proxy.password else None,
            )

        ssl_options = self.ssl_options
        if 'ca_file' in ssl_options:
            kwargs['ca_certs'] = ssl_options['ca_file']
        if ssl_options.get('verify') is False:
            kwargs['disable_ssl_certificate_validation'] = True
        for version in ('tls_minimum_version', 'tls_maximum_version'):
            if version in ssl_options:
                kwargs[version] = ssl_options[version]

        http = self.http_class(**kwargs)
        http.follow_redirects = False
        if 'cert_file' in ssl_options:
            http.add_certificate(ssl_options.get('key_file'),
                                 ssl_options['cert_file'], '',
                                 password=ssl_options.get('key_password'))
        return http

    def get(self, path, headers=None):
        return self.request('GET', path, headers=headers)

    def delete(self, path, headers=None):
        return self.request('DELETE', path, headers=headers)

    def head(self, path, headers=None):
        return self.request('HEAD', path, headers=headers)

    def post(self, path, body='', headers=None):
        return self.request('POST', path, body, headers)

    def put(self, path, body='', headers=None):
        return self.request('PUT', path, body, headers)

    def patch(self, path, body='', headers=None):
        return self.request('PATCH', path, body, headers)

    def request(self, method, path, body=None, headers=None):
        """Performs an HTTP request and returns its `Response`.

        If the service refuses the request with a 401 response and the
        connection uses digest authentication, the request is retried once
        with the credentials answering the response's challenge.

        Error responses are raised as exceptions by `handle_response()`.

        """
        method = method.upper()
        attempts = 2 if self.auth_type == 'digest' else 1
        for attempt in range(1, attempts + 1):
            request = Request(method, path, body,
                              self.build_request_headers(headers, method,
                                                         path))
            response = self.perform(request)
            if response.code == 401 and attempt < attempts:
                self._challenge = response.get('WWW-Authenticate') or ''
                log.debug('Retrying %s %s with digest credentials', method,
                          path)
                continue
            break
        return handle_response(response, request)

    def perform(self, request):
        """Sends `request` with the connection's user agent and returns the
        `Response`, without checking the response status.

        The `request` signal is sent whether or not a response arrives; if
        the exchange fails, its `result` is `None`.

        """
        start = time.time()
        result = None
        try:
            response, content = self.http.request(
                uri=self.site_root + request.path, method=request.method,
                body=request.body, headers=request.headers)
            result = Response.from_httplib2(response, content)
        except socket.timeout as exc:
            raise errors.TimeoutError(str(exc), request=request) from exc
        except ssl.SSLError as exc:
            raise errors.SSLError(str(exc), request=request) from exc
        except ConnectionRefusedError as exc:
            raise errors.ConnectionRefusedError(str(exc),
                                                request=request) from exc
        except httplib2.ServerNotFoundError as exc:
            raise errors.ConnectionError(message=str(exc),
                                         request=request) from exc
        finally:
            signals.request.send(
                self, method=request.method,
                request_uri=self.request_uri(request.path),
                params=self.request_params(request.body), result=result,
                duration=(time.time() - start) * 1000.0)
        return result

    def request_params(self, body):
        """Returns the decoded request `body`, or `None` if it can't be
        decoded."""
        if not body:
            return None
        try:
            return self.format.decode(body)
        except formats.DecodeError:
            return None

    def build_request_headers(self, headers, method, path):
        request_headers = self.authorization_header(method, path)
        request_headers.update(self.http_format_header(method))
        request_headers.update(headers or {})
        return request_headers

    def http_format_header(self, method):
        return {HTTP_FORMAT_HEADER_NAMES[method]: self.format.mime_type}

    def authorization_header(self, method, path):
        if self.auth_type == 'bearer':
            if self.bearer_token:
                return {'Authorization': 'Bearer %s' % self.bearer_token}
            return {}
        if self.user is None and self.password is None:
            return {}
        if self.auth_type == 'digest':
            # No credentials until the service has sent a challenge.
            if not self._challenge:
                return {}
            return {'Authorization': self.digest_auth_header(method, path)}
        credentials = '%s:%s' % (self.user or '', self.password or '')
        encoded = base64.b64encode(credentials.encode('utf-8')).decode('ascii')
        return {'Authorization': 'Basic %s' % encoded}

    def challenge_params(self):
        """Returns the parameters of the last ``WWW-Authenticate`` challenge
        the service sent."""
        match = re.match(r'^(\w+) (.*)', self._challenge)
        if match is None:
            return {}
        return dict(CHALLENGE_PARAM.findall(match.group(2)))

    def client_nonce(self):
        return hashlib.md5(os.urandom(16)).hexdigest()

    def digest_auth_header(self, method, path):
        """Returns the ``Authorization`` header answering the digest
        challenge for a request of `path`, as described in RFC 2617."""
        params = self.challenge_params()
        realm = params.get('realm', '')
        nonce = params.get('nonce', '')
        qop = params.get('qop')

        ha1 = md5_hex('%s:%s:%s' % (self.user or '', realm,
                                    self.password or ''))
        ha2 = md5_hex('%s:%s' % (method, path))

        attrs = [
            ('username', self.user or ''),
            ('realm', realm),
            ('nonce', nonce),
            ('uri', path),
        ]
        if qop:
            # Only the first of any offered qop values is used.
            qop = qop.split(',')[0].strip()
            nc = '00000001'
            cnonce = self.client_nonce()
            response = md5_hex(':'.join([ha1, nonce, nc, cnonce, qop, ha2]))
            attrs.extend([('qop', qop), ('nc', nc), ('cnonce', cnonce)])
        else:
            response = md5_hex(':'.join([ha1, nonce, ha2]))
        attrs.append(('response', response))
        if params.get('opaque'):
            attrs.append(('opaque', params['opaque']))

        return 'Digest %s' % ', '.join(
            '%s=%s' % (name, value) if name in UNQUOTED_DIGEST_PARAMS
            else '%s="%s"' % (name, value)
            for name, value in attrs)


def md5_hex(text):
    return hashlib.md5(text.encode('utf-8')).hexdigest()
