# Copyright (c) 2009 Six Apart Ltd.
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

import logging
import unittest

import httplib2
import mock

from remoteresources.http_mock import HttpMock


def make_response(response):
    default_response = {
        'status':       200,
        'content-type': 'application/json',
    }

    if isinstance(response, dict):
        response = dict(response)
        content = response.pop('content', '')

        status = response.get('status', 200)
        if 200 <= status < 300:
            response_info = dict(default_response)
            response_info.update(response)
        else:
            # Homg all bets are off!! Use specified headers only.
            response_info = dict(response)
    else:
        response_info = dict(default_response)
        content = response

    return httplib2.Response(response_info), content


def mock_http(req, resp_or_content):
    """Returns a mock `httplib2.Http` that answers one request with the given
    response.

    `req` is the expected keyword arguments of the request, to check with
    ``h.request.assert_called_once_with(**req)``. `resp_or_content` is the
    response content, or a dictionary of response headers with the content
    under the ``content`` key.

    """
    mock_http = mock.Mock(spec=httplib2.Http)
    mock_http.request.return_value = make_response(resp_or_content)
    return mock_http


def mock_http_sequence(*responses):
    """Returns a mock `httplib2.Http` that answers successive requests with
    the given responses, in order."""
    mock_http = mock.Mock(spec=httplib2.Http)
    mock_http.request.side_effect = [make_response(response)
                                     for response in responses]
    return mock_http


def use_http(resource_class, http):
    """Makes the connection of `resource_class` send its requests with the
    user agent `http`, and returns `http`."""
    resource_class.connection().http = http
    return http


class HttpMockTestCase(unittest.TestCase):

    """A test case whose connections send their requests to `HttpMock`."""

    def setUp(self):
        HttpMock.reset()
        HttpMock.enable()
        self.addCleanup(HttpMock.disable)
        self.addCleanup(HttpMock.reset)

    def respond_to(self):
        return HttpMock.respond_to(reset=False)


def log():
    import sys
    logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format="%(asctime)s %(levelname)s %(message)s")
