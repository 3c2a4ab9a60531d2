"""
Tests for the JSON-file defaults store.
"""
import json
import tempfile
import unittest
import sys
import os
from pathlib import Path
from unittest.mock import patch

# Add the parent directory to the path so we can import the application modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from exceptions import InvalidInputError
from models import SliderDefaults
from services.defaults_store import DefaultsStore
from utils import SecureApiKeyManager

API_KEY = "AIza" + "x" * 35

KEY_ENV = {"SHORTS_API_KEY_PASSWORD": "correct horse", "SHORTS_API_KEY_SALT": "battery staple"}


class TestDefaultsStore(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "defaults.json"
        self.store = DefaultsStore(self.path)

    def tearDown(self):
        self._tmp.cleanup()

    def test_activate_creates_factory_document(self):
        self.assertFalse(self.store.exists())

        defaults = self.store.activate()

        self.assertTrue(self.store.exists())
        self.assertEqual(defaults, SliderDefaults())
        document = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertEqual(document["api_key"], "")
        self.assertEqual(document["defaults"]["max"], 20)

    def test_activate_keeps_existing_document(self):
        self.store.activate()
        self.store.save_defaults({"max": 9})

        self.assertEqual(self.store.activate().max, 9)

    def test_load_without_file(self):
        self.assertEqual(self.store.load(), SliderDefaults())
        self.assertEqual(self.store.get_api_key(), "")

    def test_load_corrupt_file(self):
        self.path.write_text("{not json", encoding="utf-8")
        self.assertEqual(self.store.load(), SliderDefaults())

    def test_save_defaults_sanitizes(self):
        saved = self.store.save_defaults({"max": "500", "play": "popup", "gap": "lots"})

        self.assertEqual(saved.max, 50)
        self.assertEqual(saved.play, "popup")
        self.assertEqual(saved.gap, 20)
        self.assertEqual(self.store.load(), saved)

    def test_save_defaults_keeps_api_key(self):
        self.store.save_api_key(API_KEY)
        self.store.save_defaults({"max": 3})
        self.assertEqual(self.store.get_api_key(), API_KEY)

    def test_save_api_key(self):
        self.assertEqual(self.store.save_api_key(f"  {API_KEY} "), API_KEY)
        self.assertEqual(self.store.get_api_key(), API_KEY)

        self.assertEqual(self.store.save_api_key(""), "")
        self.assertEqual(self.store.get_api_key(), "")

    def test_invalid_api_key_rejected(self):
        self.store.save_api_key(API_KEY)

        with self.assertRaises(InvalidInputError):
            self.store.save_api_key("not-a-key")

        self.assertEqual(self.store.get_api_key(), API_KEY)

    def test_no_temp_files_left(self):
        self.store.activate()
        self.store.save_defaults({"gap": 10})
        self.assertEqual([p.name for p in Path(self._tmp.name).iterdir()], ["defaults.json"])

    def test_non_finite_numbers_in_file(self):
        self.path.write_text('{"defaults": {"max": 1e999, "gap": -1e999}}', encoding="utf-8")

        defaults = self.store.load()

        self.assertEqual(defaults.max, 20)
        self.assertEqual(defaults.gap, 20)

    def test_read_settings(self):
        self.store.save_defaults({"max": 4})
        self.store.save_api_key(API_KEY)

        defaults, api_key = self.store.read_settings()

        self.assertEqual(defaults.max, 4)
        self.assertEqual(api_key, API_KEY)

    def test_read_settings_reads_once(self):
        with patch.object(self.store, "_read", wraps=self.store._read) as read:
            self.store.read_settings()
        self.assertEqual(read.call_count, 1)

    def test_uninstall(self):
        self.store.activate()
        self.assertTrue(self.store.uninstall())
        self.assertFalse(self.store.exists())
        self.assertFalse(self.store.uninstall())


class TestEncryptedApiKey(unittest.TestCase):
    """Stored API key with a password and salt configured."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "defaults.json"

    def tearDown(self):
        self._tmp.cleanup()

    def make_store(self, env):
        with patch.dict(os.environ, env, clear=True):
            manager = SecureApiKeyManager(iterations=1000)
        return DefaultsStore(self.path, key_manager=manager)

    def read_document(self):
        return json.loads(self.path.read_text(encoding="utf-8"))

    def test_key_round_trip(self):
        store = self.make_store(KEY_ENV)
        self.assertTrue(store.key_manager.encryption_available)

        store.save_api_key(API_KEY)

        self.assertEqual(store.get_api_key(), API_KEY)
        self.assertEqual(self.make_store(KEY_ENV).get_api_key(), API_KEY)

    def test_file_holds_no_plain_key(self):
        self.make_store(KEY_ENV).save_api_key(API_KEY)

        document = self.read_document()
        self.assertEqual(document["api_key"], "")
        self.assertTrue(document["api_key_encrypted"])
        self.assertNotIn(API_KEY, self.path.read_text(encoding="utf-8"))

    def test_wrong_password(self):
        self.make_store(KEY_ENV).save_api_key(API_KEY)

        other = self.make_store(dict(KEY_ENV, SHORTS_API_KEY_PASSWORD="something else"))

        self.assertEqual(other.get_api_key(), "")

    def test_encrypted_key_without_password(self):
        self.make_store(KEY_ENV).save_api_key(API_KEY)

        self.assertEqual(self.make_store({}).get_api_key(), "")

    def test_plain_text_without_password(self):
        store = self.make_store({})
        self.assertFalse(store.key_manager.encryption_available)

        store.save_api_key(API_KEY)

        document = self.read_document()
        self.assertEqual(document["api_key"], API_KEY)
        self.assertNotIn("api_key_encrypted", document)

    def test_clearing_removes_token(self):
        store = self.make_store(KEY_ENV)
        store.save_api_key(API_KEY)

        store.save_api_key("")

        document = self.read_document()
        self.assertEqual(document["api_key"], "")
        self.assertNotIn("api_key_encrypted", document)
        self.assertEqual(store.get_api_key(), "")

    def test_saving_defaults_keeps_token(self):
        store = self.make_store(KEY_ENV)
        store.save_api_key(API_KEY)

        store.save_defaults({"max": 3})

        self.assertEqual(store.get_api_key(), API_KEY)


if __name__ == '__main__':
    unittest.main()
