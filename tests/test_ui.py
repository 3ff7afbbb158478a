# Tests for display helpers and clipboard handling

from unittest.mock import patch

import pyperclip

from vault import ui


class TestFormatting:
    def test_mask_password_partial(self):
        assert ui.mask_password_partial("password123") == "pa*******23"
        assert ui.mask_password_partial("abcd") == "****"
        assert ui.mask_password_partial("") == ""

    def test_score_bar(self):
        assert ui.score_bar(50, width=10) == "█████░░░░░"
        assert ui.score_bar(0, width=4) == "░░░░"
        assert ui.score_bar(150, width=4) == "████"

    def test_format_timestamp_none(self):
        assert ui.format_timestamp(None) == ""
        assert ui.format_datetime(None) == ""

    def test_health_summary(self):
        report = {'total': 5, 'weak': 2, 'reused': 0, 'old': 1}
        assert ui.health_summary(report) == "Entries: 5 | 2 weak | 1 old"
        assert ui.health_summary({'total': 0, 'weak': 0, 'reused': 0, 'old': 0}) == "Entries: 0"


class TestDisplay:
    def _entry(self):
        return {
            'id': 'a1b2c3d4e5f60718',
            'website': 'github.com',
            'username': 'dev@example.com',
            'password': 'Sup3rSecret!',
            'category': 'Work',
            'notes': '',
            'created_at': 1_700_000_000,
            'last_modified': 1_700_000_000,
        }

    def test_table_hides_passwords(self, capsys):
        ui.display_entries_table([self._entry()])
        out = capsys.readouterr().out
        assert "github.com" in out
        assert "Sup3rSecret!" not in out

    def test_table_empty(self, capsys):
        ui.display_entries_table([])
        assert "No entries found" in capsys.readouterr().out

    def test_entry_masked(self, capsys):
        ui.display_entry(self._entry(), show_password=False)
        out = capsys.readouterr().out
        assert "Su********t!" in out
        assert "Sup3rSecret!" not in out

    def test_health_report(self, capsys):
        ui.display_health_report({'total': 3, 'weak': 2, 'reused': 2, 'old': 0})
        out = capsys.readouterr().out
        assert "60/100" in out
        assert "Needs attention" in out


class TestClipboard:
    @patch("vault.ui.pyperclip.copy")
    def test_copy_without_timer(self, mock_copy):
        assert ui.copy_to_clipboard("secret", timeout=0) is True
        mock_copy.assert_called_once_with("secret")

    @patch("vault.ui.pyperclip.copy", side_effect=pyperclip.PyperclipException("no clipboard"))
    def test_copy_failure_reported(self, mock_copy, capsys):
        assert ui.copy_to_clipboard("secret", timeout=0) is False
        assert "Clipboard error" in capsys.readouterr().out
