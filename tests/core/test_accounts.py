import tempfile
import unittest
from pathlib import Path

from metric_widget_cli.core.accounts import filter_accounts, load_accounts, parse_accounts
from metric_widget_cli.core.exceptions import ConfigError
from metric_widget_cli.core.models import AccountDescriptor

THREE_ACCOUNTS = """
[[account]]
namespace = "SomeDataProcessingProgram"
account_id = "111111111111"
region = "us-east-1"

[[account]]
namespace = "SomeDataProcessingProgram"
account_id = "222222222222"
region = "eu-west-1"

[[account]]
namespace = "OtherProgram"
account_id = "222222222222"
region = "us-west-2"
role_arn = "arn:aws:iam::222222222222:role/Observer"
"""


class TestParseAccounts(unittest.TestCase):
    def test_accounts_are_returned_in_file_order(self):
        accounts = parse_accounts(THREE_ACCOUNTS)

        self.assertEqual(len(accounts), 3)
        self.assertEqual(
            accounts[0],
            AccountDescriptor("SomeDataProcessingProgram", "111111111111", "us-east-1"),
        )
        self.assertEqual([a.region for a in accounts], ["us-east-1", "eu-west-1", "us-west-2"])
        self.assertIsNone(accounts[1].role_arn)
        self.assertEqual(accounts[2].role_arn, "arn:aws:iam::222222222222:role/Observer")

    def test_empty_account_list_is_valid(self):
        self.assertEqual(parse_accounts("account = []"), [])

    def test_unknown_fields_are_ignored(self):
        accounts = parse_accounts(
            '[[account]]\nnamespace = "A"\naccount_id = "1"\nregion = "r"\nowner = "team"\n'
        )
        self.assertEqual(accounts, [AccountDescriptor("A", "1", "r")])

    def test_missing_account_id_fails(self):
        with self.assertRaises(ConfigError) as ctx:
            parse_accounts('[[account]]\nnamespace = "A"\nregion = "us-east-1"\n')
        self.assertIn("account_id", str(ctx.exception))

    def test_non_string_field_fails(self):
        with self.assertRaises(ConfigError) as ctx:
            parse_accounts('[[account]]\nnamespace = "A"\naccount_id = 111111111111\nregion = "us-east-1"\n')
        self.assertIn("must be a string", str(ctx.exception))

    def test_empty_field_fails(self):
        with self.assertRaises(ConfigError):
            parse_accounts('[[account]]\nnamespace = ""\naccount_id = "1"\nregion = "us-east-1"\n')

    def test_invalid_syntax_fails(self):
        with self.assertRaises(ConfigError) as ctx:
            parse_accounts("[[account]\nnamespace = ")
        self.assertIn("invalid TOML", str(ctx.exception))

    def test_missing_account_tables_fails(self):
        with self.assertRaises(ConfigError):
            parse_accounts('title = "accounts"\n')

    def test_account_must_be_an_array_of_tables(self):
        with self.assertRaises(ConfigError):
            parse_accounts('account = "nope"\n')
        with self.assertRaises(ConfigError):
            parse_accounts('account = ["nope"]\n')

    def test_one_bad_entry_fails_the_whole_load(self):
        text = THREE_ACCOUNTS + '\n[[account]]\nnamespace = "Broken"\nregion = "us-east-1"\n'
        with self.assertRaises(ConfigError) as ctx:
            parse_accounts(text)
        self.assertIn("account #4", str(ctx.exception))


class TestLoadAccounts(unittest.TestCase):
    def test_load_from_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "accounts.toml"
            path.write_text(THREE_ACCOUNTS, encoding="utf-8")

            accounts = load_accounts(path)

        self.assertEqual(len(accounts), 3)
        self.assertEqual(accounts[1].account_id, "222222222222")

    def test_missing_file_raises_config_error(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(ConfigError) as ctx:
                load_accounts(Path(tmp) / "missing.toml")
        self.assertIn("Unable to read accounts file", str(ctx.exception))


class TestFilterAccounts(unittest.TestCase):
    def setUp(self):
        self.accounts = parse_accounts(THREE_ACCOUNTS)

    def test_no_pattern_returns_everything(self):
        self.assertEqual(filter_accounts(self.accounts, None), self.accounts)
        self.assertEqual(filter_accounts(self.accounts, ""), self.accounts)

    def test_pattern_keeps_matching_namespaces_in_order(self):
        filtered = filter_accounts(self.accounts, "DataProcessing")
        self.assertEqual([a.region for a in filtered], ["us-east-1", "eu-west-1"])

        filtered = filter_accounts(self.accounts, "Program")
        self.assertEqual(filtered, self.accounts)

    def test_pattern_matching_nothing(self):
        self.assertEqual(filter_accounts(self.accounts, "ItemDPP"), [])


class TestResolveRoleArn(unittest.TestCase):
    def test_explicit_role_wins(self):
        acc = AccountDescriptor("A", "111111111111", "us-east-1", role_arn="arn:aws:iam::111111111111:role/X")
        self.assertEqual(acc.resolve_role_arn("Other"), "arn:aws:iam::111111111111:role/X")

    def test_role_derived_from_name(self):
        acc = AccountDescriptor("A", "111111111111", "us-east-1")
        self.assertEqual(acc.resolve_role_arn("Observer"), "arn:aws:iam::111111111111:role/Observer")
        self.assertIsNone(acc.resolve_role_arn(None))


if __name__ == "__main__":
    unittest.main()
