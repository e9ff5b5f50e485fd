import logging
import unittest

from docquery import configure_logging, settings
from docquery.services.transport import call_metadata


class SettingsTests(unittest.TestCase):
    def setUp(self):
        self._backup = {
            "FIRESTORE_SET_CREATE_ON": settings.FIRESTORE_SET_CREATE_ON,
            "FIRESTORE_EMULATOR_HOST": settings.FIRESTORE_EMULATOR_HOST,
            "LOG_LEVEL": settings.LOG_LEVEL,
        }
        self._level = logging.getLogger("docquery").level

    def tearDown(self):
        for key, value in self._backup.items():
            setattr(settings, key, value)
        logging.getLogger("docquery").setLevel(self._level)

    def test_defaults(self):
        self.assertEqual(settings.FIRESTORE_DATABASE, "(default)")
        self.assertEqual(settings.FIRESTORE_API_ENDPOINT, "firestore.googleapis.com")

    def test_unknown_set_mode_falls_back_to_any_error(self):
        settings.FIRESTORE_SET_CREATE_ON = "sometimes"
        self.assertEqual(settings.set_create_on, "any_error")
        settings.FIRESTORE_SET_CREATE_ON = " Not_Found "
        self.assertEqual(settings.set_create_on, "not_found")

    def test_emulator_flag(self):
        settings.FIRESTORE_EMULATOR_HOST = ""
        self.assertFalse(settings.emulator_enabled)
        settings.FIRESTORE_EMULATOR_HOST = "localhost:8080"
        self.assertTrue(settings.emulator_enabled)

    def test_configure_logging_sets_package_level(self):
        configure_logging("debug")
        self.assertEqual(logging.getLogger("docquery").level, logging.DEBUG)
        settings.LOG_LEVEL = "error"
        configure_logging()
        self.assertEqual(logging.getLogger("docquery").level, logging.ERROR)

    def test_call_metadata_carries_raw_token(self):
        self.assertEqual(call_metadata("Bearer abc"), (("authorization", "Bearer abc"),))
        self.assertEqual(call_metadata(None), ())
        self.assertEqual(call_metadata(""), ())


if __name__ == "__main__":
    unittest.main()
