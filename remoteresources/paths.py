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

Helpers for building the URL paths of remote resources.

A resource's path starts with its *prefix*, a template such as
``/people/:person_id/`` whose ``:name`` placeholders are the resource's
prefix parameters. The `Resource` class methods that build element and
collection paths use these helpers to fill in the template and to render
query strings.

"""

from collections.abc import Mapping
import functools
import re
from urllib.parse import quote, quote_plus

from remoteresources.errors import MissingPrefixParam


PREFIX_PARAMETER = re.compile(r':(\w+)')


@functools.lru_cache(maxsize=None)
def parse_prefix_parameters(template):
    """Returns the set of placeholder names in the prefix template
    `template`."""
    return frozenset(PREFIX_PARAMETER.findall(template))


def is_blank(value):
    """Returns whether `value` is missing for the purpose of filling in a
    prefix parameter: `None`, `False`, an empty or all-whitespace string, or
    an empty container."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (Mapping, list, tuple, set, frozenset)):
        return not value
    return False


def check_prefix_options(template, options):
    """Raises `MissingPrefixParam` if `options` lacks a value for any of the
    placeholders in `template`."""
    options = options or {}
    for param in sorted(parse_prefix_parameters(template)):
        if is_blank(options.get(param)):
            raise MissingPrefixParam('%s prefix_option is missing' % param)


def fill_prefix(template, options):
    """Substitutes the escaped values in `options` for the placeholders in
    `template`."""
    options = options or {}

    def substitute(match):
        value = options.get(match.group(1))
        if value is None:
            return ''
        return quote(to_param(value))

    return PREFIX_PARAMETER.sub(substitute, template)


def escape_segment(value):
    """Escapes `value` for use as a single path segment, such as an id."""
    return quote(to_param(value), safe='')


def to_param(value):
    """Renders `value` as it should appear in a URL."""
    if value is None:
        return ''
    if value is True:
        return 'true'
    if value is False:
        return 'false'
    return str(value)


def to_query(value, namespace=None):
    """Encodes `value` as a query string.

    Mappings are rendered as ``key=value`` pairs in sorted order, nested
    mappings with bracketed names (``outer[inner]=value``) and sequences with
    empty brackets (``key[]=a&key[]=b``). Empty nested containers are
    omitted.

    """
    if isinstance(value, Mapping):
        pairs = []
        for key, item in value.items():
            if isinstance(item, (Mapping, list, tuple)) and not item:
                continue
            if namespace is None:
                name = to_param(key)
            else:
                name = '%s[%s]' % (namespace, to_param(key))
            pairs.append(to_query(item, name))
        # Items under an array must keep their order.
        if namespace is None or '[]' not in namespace:
            pairs.sort()
        return '&'.join(pairs)

    if isinstance(value, (list, tuple)):
        prefix = '%s[]' % namespace
        if not value:
            return to_query(None, prefix)
        return '&'.join(to_query(item, prefix) for item in value)

    return '%s=%s' % (quote_plus(namespace), quote_plus(to_param(value)))


def query_string(options):
    """Returns `options` as a query string with its leading ``?``, or an
    empty string if there are no options."""
    if not options:
        return ''
    return '?%s' % to_query(options)
