# pthome/tests.py
"""
Project Settings Test Suite
===========================

Database selection from the environment.
"""

from django.test import SimpleTestCase

from .settings import database_config


class DatabaseConfigTest(SimpleTestCase):

    def test_sqlite_is_the_default(self):
        config = database_config({'SQLITE_PATH': '/tmp/pulse.sqlite3'})

        self.assertEqual(config['ENGINE'], 'django.db.backends.sqlite3')
        self.assertEqual(config['NAME'], '/tmp/pulse.sqlite3')
        self.assertEqual(config['OPTIONS']['timeout'], 20)

    def test_postgres_from_environment(self):
        config = database_config({
            'DB_ENGINE': 'PostgreSQL',
            'DB_NAME': 'pulse',
            'DB_USER': 'pulse',
            'DB_PASSWORD': 'secret',
            'DB_HOST': 'db',
            'DB_PORT': '6543',
        })

        self.assertEqual(config['ENGINE'], 'django.db.backends.postgresql')
        self.assertEqual(config['HOST'], 'db')
        self.assertEqual(config['PORT'], '6543')
        self.assertEqual(config['USER'], 'pulse')

    def test_unknown_engine_is_rejected(self):
        with self.assertRaises(ValueError):
            database_config({'DB_ENGINE': 'oracle'})
