import unittest

from featuredash.formatting import format_feature_name


class FormatFeatureNameTests(unittest.TestCase):
    def test_formats_common_name_styles(self) -> None:
        cases = {
            "user_profile": "User Profile",
            "user-settings": "User Settings",
            "userProfile": "User Profile",
            "XMLParser": "Xml Parser",
            "HTTPServer": "Http Server",
            "myHTTPSConnection_handler-v2": "My Https Connection Handler V2",
            "checkout": "Checkout",
        }
        for raw, expected in cases.items():
            with self.subTest(raw=raw):
                self.assertEqual(format_feature_name(raw), expected)

    def test_collapses_repeated_separators(self) -> None:
        self.assertEqual(format_feature_name("billing__invoices--v1"), "Billing Invoices V1")

    def test_empty_name(self) -> None:
        self.assertEqual(format_feature_name(""), "")


if __name__ == "__main__":
    unittest.main()
