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

`SingletonResource` is the class of remote resources of which there is only
one, at a path with no id::

    >>> class Inventory(SingletonResource):
    ...     site   = 'http://api.example.com/'
    ...     prefix = '/products/:product_id/'
    ...
    >>> Inventory.find(params={'product_id': 5})   # GET /products/5/inventory.json

"""

from remoteresources import paths
from remoteresources.resource import Resource, ResourceMeta
from remoteresources.settings import Setting


class SingletonMeta(ResourceMeta):

    """Metaclass for `SingletonResource` classes, adding the
    `singleton_name` setting."""

    singleton_name = Setting(default=lambda cls: cls.element_name,
                             convert=str, inherited=False)


class SingletonResource(Resource, metaclass=SingletonMeta):

    """A remote resource with no id, of which there is one per prefix.

    The resource's path is its prefix followed by its `singleton_name`,
    which is by default its `element_name`.

    """

    @classmethod
    def singleton_path(cls, prefix_options=None, query_options=None):
        """Returns the path of the singleton resource.

        If `query_options` is not given, `prefix_options` may hold both
        prefix and query options, and is split with `split_options()`.

        """
        if query_options is None:
            prefix_options, query_options = cls.split_options(prefix_options)
        return '%s%s%s%s' % (cls.prefix_path(prefix_options),
                             cls.singleton_name, cls.format_extension,
                             paths.query_string(query_options))

    @classmethod
    def find(cls, params=None):
        """Requests and returns the singleton resource.

        Optional parameter `params` is a mapping of the prefix options and
        query parameters to find the resource with.

        """
        prefix_options, query_options = cls.split_options(params)
        path = cls.singleton_path(prefix_options, query_options)
        data = cls.format.decode(cls.connection().get(path, cls.headers).body)
        return cls.instantiate_record(data, prefix_options)

    def create_path(self):
        return type(self).singleton_path(self.prefix_options, {})

    def resource_path(self):
        return type(self).singleton_path(self.prefix_options, {})

    def fetch(self):
        return type(self).find(params=self.prefix_options)
