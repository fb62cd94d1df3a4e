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

import unittest

from remoteresources import errors, paths


class TestPrefixes(unittest.TestCase):

    def test_parse_prefix_parameters(self):
        params = paths.parse_prefix_parameters('/people/:person_id/pets/:pet_id/')
        self.assertEqual(params, frozenset(['person_id', 'pet_id']))
        self.assertEqual(paths.parse_prefix_parameters('/'), frozenset())

    def test_check_prefix_options(self):
        template = '/people/:person_id/'
        paths.check_prefix_options(template, {'person_id': 1})
        # Zero is a value, not a missing parameter.
        paths.check_prefix_options(template, {'person_id': 0})

        for missing in ({}, {'person_id': None}, {'person_id': ''},
                        {'person_id': '  '}, {'person_id': []}):
            with self.assertRaises(errors.MissingPrefixParam) as cm:
                paths.check_prefix_options(template, missing)
            self.assertEqual(str(cm.exception), 'person_id prefix_option is missing')

    def test_fill_prefix(self):
        template = '/people/:person_id/pets/:pet_id/'
        filled = paths.fill_prefix(template, {'person_id': 'a b', 'pet_id': 7})
        self.assertEqual(filled, '/people/a%20b/pets/7/')

    def test_is_blank(self):
        for value in (None, False, '', ' \t', [], {}, ()):
            self.assertTrue(paths.is_blank(value), '%r should be blank' % (value,))
        for value in (0, 'x', [None], True, 0.0):
            self.assertFalse(paths.is_blank(value), '%r should not be blank' % (value,))


class TestParams(unittest.TestCase):

    def test_escape_segment(self):
        self.assertEqual(paths.escape_segment('a/b c'), 'a%2Fb%20c')
        self.assertEqual(paths.escape_segment(12), '12')

    def test_to_param(self):
        self.assertEqual(paths.to_param(None), '')
        self.assertEqual(paths.to_param(True), 'true')
        self.assertEqual(paths.to_param(False), 'false')
        self.assertEqual(paths.to_param(3), '3')


class TestQueryStrings(unittest.TestCase):

    def test_flat(self):
        self.assertEqual(paths.to_query({'b': 2, 'a': 'x y'}), 'a=x+y&b=2')

    def test_nested(self):
        query = paths.to_query({'q': {'name': 'Matz', 'age': 48}})
        self.assertEqual(query, 'q%5Bage%5D=48&q%5Bname%5D=Matz')

    def test_arrays(self):
        query = paths.to_query({'ids': [3, 1, 2]})
        # Array items keep their order.
        self.assertEqual(query, 'ids%5B%5D=3&ids%5B%5D=1&ids%5B%5D=2')

    def test_empty_containers_are_omitted(self):
        self.assertEqual(paths.to_query({'a': [], 'b': {}, 'c': 1}), 'c=1')

    def test_query_string(self):
        self.assertEqual(paths.query_string({}), '')
        self.assertEqual(paths.query_string(None), '')
        self.assertEqual(paths.query_string({'active': True}), '?active=true')
