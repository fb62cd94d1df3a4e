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

remoteresources maps the resources of a REST web service to Python classes.

You define each kind of resource the service provides as a `Resource`
subclass, naming the service's URL as its `site`. Your classes then find,
create, update and delete the remote resources with the conventional HTTP
verbs and paths, converting between the service's JSON (or XML) and real
Python objects.

remoteresources have:

* conventional resource paths, including resources nested under other
  resources through path prefixes

* full HTTP support through the `httplib2` library, including basic, digest
  and bearer token authentication, proxies and SSL options

* lazily requested collections that can be filtered further before they're
  requested

* validation errors from both local checks and the remote service's 422
  responses

* associations between resources


Example
=======

For example, you can work with a blog's posts and comments::

    >>> from remoteresources import Resource, fields, associations
    >>> class Post(Resource):
    ...     site     = 'http://blog.example.com/'
    ...     title    = fields.String(required=True)
    ...     comments = associations.HasMany()
    ...
    >>> class Comment(Resource):
    ...     site   = 'http://blog.example.com/'
    ...     prefix = '/posts/:post_id/'
    ...
    >>> post = Post.find(1)
    >>> post.title = 'Hello again'
    >>> post.save()
    True
    >>> comments = Comment.where(post_id=1, approved=True)
    >>> [c.body for c in comments]
    ['First!', 'Nice post']


Logging
=======

Every request is announced with the `remoteresources.signals.request`
signal, and logged to the ``remoteresources.connection`` logger: at ``INFO``
level for successful requests, and at ``ERROR`` level for error responses.

"""

__version__ = '1.2.0'
__author__ = 'Six Apart Ltd.'

import remoteresources.log
from remoteresources import errors, fields, formats, signals
from remoteresources.connection import Connection
from remoteresources.resource import Resource
from remoteresources.singleton import SingletonResource
from remoteresources.collection import LazyCollection
from remoteresources import associations

__all__ = ('Resource', 'SingletonResource', 'LazyCollection', 'Connection',
           'associations', 'errors', 'fields', 'formats', 'signals')
