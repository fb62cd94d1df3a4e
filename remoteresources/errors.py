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

Exceptions raised by `remoteresources` connections and resources.

Every exception caused by an HTTP exchange is a subclass of
`ConnectionError`, which is itself an `http.client.HTTPException`. The
exchange that caused the error is available through the exception's
`request` and `response` attributes.

Note several names here shadow Python builtins (`ConnectionError`,
`TimeoutError`, `ConnectionRefusedError`); refer to them through the module,
as in ``errors.TimeoutError``.

"""

import http.client


class ConnectionError(http.client.HTTPException):

    """An HTTPException thrown when a request to the remote service could not
    be completed successfully.

    Optional parameter `response` is the response the service gave, if any.
    Optional parameter `message` replaces the generated description of the
    failure. Optional parameter `request` is the request that failed.

    """

    def __init__(self, response=None, message=None, request=None):
        self.response = response
        self.message = message
        self.request = request
        super(ConnectionError, self).__init__(str(self))

    def __str__(self):
        if self.message:
            return self.message
        message = 'Failed.'
        if self.request is not None:
            message += '  Request = %s %s.' % (self.request.method,
                                              self.request.path)
        code = getattr(self.response, 'code', None)
        if code is not None:
            message += '  Response code = %s.' % code
        reason = getattr(self.response, 'message', None)
        if reason:
            message += '  Response message = %s.' % reason
        return message


class TimeoutError(ConnectionError):
    """An HTTPException thrown when the remote service did not answer before
    the configured timeout elapsed."""

    def __init__(self, message, request=None):
        super(TimeoutError, self).__init__(message=message, request=request)

    def __str__(self):
        return 'Request timed out: %s' % (self.message,)


class SSLError(ConnectionError):
    """An HTTPException thrown when the TLS handshake with the remote service
    failed."""

    def __init__(self, message, request=None):
        super(SSLError, self).__init__(message=message, request=request)


class ConnectionRefusedError(ConnectionError):
    """An HTTPException thrown when the remote service refused the
    connection."""

    def __init__(self, message, request=None):
        super(ConnectionRefusedError, self).__init__(message=message,
                                                     request=request)


class Redirection(ConnectionError):

    """An HTTPException thrown when the remote service answers with a 3xx
    redirect.

    Redirects are never followed; the target is available through the
    response's ``Location`` header.

    """

    def __str__(self):
        message = super(Redirection, self).__str__()
        location = None
        if self.response is not None:
            location = self.response.get('Location')
        if location:
            message = '%s => %s' % (message, location)
        return message


class MissingPrefixParam(ValueError):
    """An exception thrown when a path is built for a resource without a
    value for one of its prefix parameters.

    No request is made when this exception is raised.

    """
    pass


class ClientError(ConnectionError):
    """An HTTPException thrown for 4xx responses with no more specific
    exception class."""
    pass


class BadRequest(ClientError):
    """An HTTPException thrown for a 400 Bad Request response."""
    pass


class UnauthorizedAccess(ClientError):

    """An HTTPException thrown when the server reports the request was not
    authenticated.

    This exception corresponds to the HTTP status code 401. Connections using
    digest authentication raise it only when the retried request is refused
    too.

    """
    pass


class ForbiddenAccess(ClientError):
    """An HTTPException thrown for a 403 Forbidden response."""
    pass


class ResourceNotFound(ClientError):
    """An HTTPException thrown for a 404 Not Found response."""
    pass


class MethodNotAllowed(ClientError):

    """An HTTPException thrown for a 405 Method Not Allowed response.

    The methods the server named in its ``Allow`` header are available as
    `allowed_methods`.

    """

    @property
    def allowed_methods(self):
        if self.response is None:
            return []
        allow = self.response.get('Allow') or ''
        return [method.strip().upper() for method in allow.split(',')
                if method.strip()]


class ResourceConflict(ClientError):
    """An HTTPException thrown for a 409 Conflict response."""
    pass


class ResourceGone(ClientError):
    """An HTTPException thrown for a 410 Gone response."""
    pass


class ResourceInvalid(ClientError):

    """An HTTPException thrown for a 422 Unprocessable Entity response.

    `Resource.save()` catches this exception and loads the response body into
    the resource's `errors`. `Resource.save_or_raise()` raises it again with
    the failing resource as its `resource` attribute.

    """

    def __init__(self, response=None, message=None, request=None,
                 resource=None):
        self.resource = resource
        super(ResourceInvalid, self).__init__(response, message, request)

    def __str__(self):
        if self.resource is not None and not self.message:
            messages = self.resource.errors.full_messages()
            if messages:
                return 'Validation failed: %s' % ', '.join(messages)
        return super(ResourceInvalid, self).__str__()


class UnavailableForLegalReasons(ClientError):
    """An HTTPException thrown for a 451 Unavailable For Legal Reasons
    response."""
    pass


class ServerError(ConnectionError):
    """An HTTPException thrown for any 5xx response."""
    pass
