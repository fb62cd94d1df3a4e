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

from remoteresources import Resource
from remoteresources.collection import LazyCollection, deep_merge
from remoteresources.http_mock import HttpMock
from tests import utils


class PaginatedCollection(LazyCollection):

    def parse_response(self, data):
        self.total = data['total']
        return data['people']


class TestDeepMerge(unittest.TestCase):

    def test_deep_merge(self):
        original = {'a': 1, 'q': {'name': 'Matz', 'tags': ['ruby']}}
        merged = deep_merge(original, {'b': 2, 'q': {'age': 48, 'tags': ['lisp']}})
        self.assertEqual(merged, {'a': 1, 'b': 2,
                                  'q': {'name': 'Matz', 'age': 48, 'tags': ['lisp']}})
        self.assertEqual(original, {'a': 1, 'q': {'name': 'Matz', 'tags': ['ruby']}})


class TestCollections(utils.HttpMockTestCase):

    def test_delivered(self):
        people = LazyCollection(elements=['a', 'b'])
        self.assertTrue(people.requested)
        self.assertEqual(list(people), ['a', 'b'])
        self.assertEqual(people[1], 'b')
        self.assertTrue('a' in people)
        self.assertEqual(list(reversed(people)), ['b', 'a'])
        self.assertEqual(people.first(), 'a')
        self.assertEqual(people.last(), 'b')

        empty = LazyCollection(elements=[])
        self.assertIsNone(empty.first())
        self.assertIsNone(empty.last())

    def test_lazy(self):

        class Person(Resource):
            site = 'http://example.com/'

        self.respond_to().get('/people.json', body='[{"id": 1}, {"id": 2}]')

        people = Person.all()
        self.assertFalse(people.requested)
        self.assertTrue('not requested' in repr(people))
        self.assertEqual(HttpMock.requests, [])

        self.assertTrue(people.call() is people)
        self.assertTrue(people.requested)
        self.assertEqual([p.id for p in people.to_list()], [1, 2])
        self.assertEqual(len(HttpMock.requests), 1)

        # A delivered collection is requested again only when refreshed.
        len(people)
        self.assertEqual(len(HttpMock.requests), 1)
        self.assertTrue(people.refresh() is people)
        self.assertEqual(len(HttpMock.requests), 2)

    def test_prefix_options(self):

        class Comment(Resource):
            site = 'http://example.com/'
            prefix = '/posts/:post_id/'

        self.respond_to().get('/posts/5/comments.json?approved=true', body='[{"id": 1}]')

        comments = Comment.where(post_id=5, approved=True)
        self.assertEqual(comments.prefix_options, {'post_id': 5})
        self.assertEqual(comments.query_params, {'approved': True})
        self.assertEqual(comments.first().prefix_options, {'post_id': 5})

    def test_where_is_chainable(self):

        class Comment(Resource):
            site = 'http://example.com/'
            prefix = '/posts/:post_id/'

        comments = Comment.where(approved=True)
        narrower = comments.where(post_id=5, author={'name': 'Matz'})
        self.assertFalse(narrower is comments)
        self.assertTrue(isinstance(narrower, LazyCollection))
        self.assertEqual(narrower.path_params, {'approved': True, 'post_id': 5,
                                                'author': {'name': 'Matz'}})
        self.assertEqual(narrower.prefix_options, {'post_id': 5})
        self.assertEqual(narrower.request_path(),
                         '/posts/5/comments.json?approved=true&author%5Bname%5D=Matz')
        self.assertEqual(comments.path_params, {'approved': True})
        self.assertEqual(HttpMock.requests, [])

        self.respond_to().get('/posts/5/comments.json?approved=true&author%5Bname%5D=Matz',
                              body='[{"id": 1}, {"id": 2}]')
        self.assertEqual(len(narrower), 2)
        self.assertEqual([c.id for c in narrower], [1, 2])
        self.assertEqual(narrower.first().id, 1)
        self.assertEqual(len(HttpMock.requests), 1)
        self.assertFalse(comments.requested)

    def test_first_or_create(self):

        class Person(Resource):
            site = 'http://example.com/'

        self.respond_to() \
            .get('/people.json?name=Matz', body='[]') \
            .post('/people.json', status=201, response_headers={'Location': '/people/7.json'})

        person = Person.where(name='Matz').first_or_create(age=48)
        self.assertEqual(person.id, '7')
        self.assertEqual(person.attributes, {'name': 'Matz', 'age': 48, 'id': '7'})
        self.assertFalse(person.is_new())

    def test_first_or_initialize(self):

        class Person(Resource):
            site = 'http://example.com/'

        self.respond_to().get('/people.json?name=Matz', body='[]')
        person = Person.where(name='Matz').first_or_initialize(age=48)
        self.assertTrue(person.is_new())
        self.assertEqual(person.attributes, {'name': 'Matz', 'age': 48})

        self.respond_to().get('/people.json?name=David', body='[{"id": 2, "name": "David"}]')
        person = Person.where(name='David').first_or_initialize()
        self.assertEqual(person.id, 2)

    def test_without_resource_class(self):
        self.assertRaises(ValueError, LazyCollection(elements=[]).first_or_create)
        self.assertRaises(ValueError, LazyCollection(elements=[]).first_or_initialize)

    def test_custom_collection_class(self):

        class Person(Resource):
            site = 'http://example.com/'
            collection_class = PaginatedCollection

        self.respond_to().get('/people.json?page=2',
                              body='{"people": [{"id": 3}], "total": 3}')

        people = Person.where(page=2)
        self.assertTrue(isinstance(people, PaginatedCollection))
        self.assertEqual([p.id for p in people], [3])
        self.assertEqual(people.total, 3)
        self.assertTrue(isinstance(people.where(per_page=1), PaginatedCollection))
