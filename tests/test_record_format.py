# Tests for the record file and metadata sidecar
#
# Coverage:
#   - Record line layout (8 fields, hex encrypted fields, plaintext timestamps)
#   - Decoding failures with line numbers
#   - Snapshot write/read through files, blank line handling
#   - Metadata sidecar build/write/read and validation

import json
import re

import pytest

from vault.crypto import derive_master_key
from vault.record_format import (
    RECORD_FIELD_COUNT,
    VaultFormatError,
    build_metadata,
    decode_record,
    encode_record,
    metadata_kdf_params,
    metadata_path,
    metadata_salt,
    read_metadata,
    read_records,
    write_metadata,
    write_records,
)

from conftest import FAST_KDF_PARAMS

HEX_RE = re.compile(r'^[0-9a-f]+$')


@pytest.fixture(scope="module")
def master_key():
    key, _ = derive_master_key("record passphrase", params=FAST_KDF_PARAMS)
    return key


def _entry(entry_id="a1b2c3d4e5f60718", website="github.com", created=1000, modified=2000):
    return {
        'id': entry_id,
        'website': website,
        'username': 'dev@example.com',
        'password': 'pa|ss\nword',
        'category': 'Work',
        'notes': '',
        'created_at': created,
        'last_modified': modified,
    }


class TestRecordLine:
    def test_layout(self, master_key):
        line = encode_record(master_key, _entry())
        assert line.endswith('\n')
        assert line.count('\n') == 1

        parts = line.rstrip('\n').split('|')
        assert len(parts) == RECORD_FIELD_COUNT
        for part in parts[:6]:
            assert HEX_RE.match(part)
            assert len(part) % 2 == 0
        assert parts[6:] == ['1000', '2000']

    def test_decode_restores_entry(self, master_key):
        entry = _entry()
        assert decode_record(master_key, encode_record(master_key, entry)) == entry

    def test_wrong_field_count(self, master_key):
        line = encode_record(master_key, _entry()).rstrip('\n') + '|extra'
        with pytest.raises(VaultFormatError) as exc_info:
            decode_record(master_key, line, 3)
        assert exc_info.value.line_number == 3
        assert str(exc_info.value).startswith("line 3:")

    def test_non_numeric_timestamp(self, master_key):
        parts = encode_record(master_key, _entry()).rstrip('\n').split('|')
        parts[6] = '-5'
        with pytest.raises(VaultFormatError):
            decode_record(master_key, '|'.join(parts))

    def test_non_ascii_digit_timestamp(self, master_key):
        parts = encode_record(master_key, _entry()).rstrip('\n').split('|')
        parts[6] = '١٢٣'
        with pytest.raises(VaultFormatError):
            decode_record(master_key, '|'.join(parts))

    def test_corrupt_field(self, master_key):
        parts = encode_record(master_key, _entry()).rstrip('\n').split('|')
        parts[1] = 'not-hex'
        with pytest.raises(VaultFormatError, match="website"):
            decode_record(master_key, '|'.join(parts))

    def test_wrong_key(self, master_key):
        other_key, _ = derive_master_key("another passphrase", params=FAST_KDF_PARAMS)
        with pytest.raises(VaultFormatError):
            decode_record(other_key, encode_record(master_key, _entry()))


class TestRecordFile:
    def test_snapshot_preserves_order(self, tmp_path, master_key):
        path = str(tmp_path / "vault.dat")
        entries = [_entry("00000000000000aa", "b.com"), _entry("00000000000000bb", "a.com")]
        write_records(path, master_key, entries)
        assert read_records(path, master_key) == entries

    def test_empty_snapshot(self, tmp_path, master_key):
        path = str(tmp_path / "vault.dat")
        write_records(path, master_key, [])
        with open(path) as f:
            assert f.read() == ''
        assert read_records(path, master_key) == []

    def test_blank_lines_skipped(self, tmp_path, master_key):
        path = tmp_path / "vault.dat"
        path.write_text('\n' + encode_record(master_key, _entry()) + '\n\n')
        assert len(read_records(str(path), master_key)) == 1

    def test_malformed_line_reports_line_number(self, tmp_path, master_key):
        path = tmp_path / "vault.dat"
        path.write_text(encode_record(master_key, _entry()) + 'garbage\n')
        with pytest.raises(VaultFormatError) as exc_info:
            read_records(str(path), master_key)
        assert exc_info.value.line_number == 2

    def test_missing_file(self, tmp_path, master_key):
        with pytest.raises(OSError):
            read_records(str(tmp_path / "missing.dat"), master_key)

    def test_no_temp_files_left(self, tmp_path, master_key):
        path = str(tmp_path / "vault.dat")
        write_records(path, master_key, [_entry()])
        assert [p.name for p in tmp_path.iterdir()] == ["vault.dat"]


class TestMetadata:
    def _metadata(self):
        key, salt = derive_master_key("meta passphrase", params=FAST_KDF_PARAMS)
        return build_metadata(salt, FAST_KDF_PARAMS, {'token': 't', 'nonce': 'n', 'tag': 'g'}), salt

    def test_sidecar_path(self):
        assert metadata_path("/tmp/vault.dat") == "/tmp/vault.dat.meta"

    def test_write_and_read(self, tmp_path):
        vault_path = str(tmp_path / "vault.dat")
        metadata, salt = self._metadata()
        write_metadata(vault_path, metadata)

        loaded = read_metadata(vault_path)
        assert loaded == metadata
        assert metadata_salt(loaded) == salt
        assert metadata_kdf_params(loaded) == FAST_KDF_PARAMS
        assert loaded['kdf']['algorithm'] == 'argon2id'

    def test_missing_sidecar(self, tmp_path):
        assert read_metadata(str(tmp_path / "vault.dat")) is None

    def test_invalid_json(self, tmp_path):
        vault_path = str(tmp_path / "vault.dat")
        (tmp_path / "vault.dat.meta").write_text("{not json")
        with pytest.raises(VaultFormatError):
            read_metadata(vault_path)

    def test_missing_fields(self, tmp_path):
        vault_path = str(tmp_path / "vault.dat")
        (tmp_path / "vault.dat.meta").write_text(json.dumps({'version': '1.0'}))
        with pytest.raises(VaultFormatError, match="salt"):
            read_metadata(vault_path)

    def test_invalid_salt(self):
        metadata, _ = self._metadata()
        metadata['salt'] = '***'
        with pytest.raises(VaultFormatError):
            metadata_salt(metadata)

    def test_invalid_kdf_params(self):
        metadata, _ = self._metadata()
        metadata['kdf']['memory_cost'] = "lots"
        with pytest.raises(VaultFormatError):
            metadata_kdf_params(metadata)

