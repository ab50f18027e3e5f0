"""
Tests for atomic file writing - no partial writes, temp cleanup.
"""

import json
import pytest
from pathlib import Path
from unittest.mock import patch

from reports.atomic_writer import (
    write_bytes_atomic,
    write_text_atomic,
    write_json_atomic,
    verify_file_integrity
)


class TestAtomicWriter:
    """Tests for atomic write helpers."""

    def test_write_bytes(self, tmp_path):
        output_path = tmp_path / 'nested' / 'chart.png'
        result = write_bytes_atomic(b'\x89PNG data', output_path)

        assert result['status'] == 'completed'
        assert result['bytes_written'] == 9
        assert result['output_path'] == str(output_path)
        assert output_path.read_bytes() == b'\x89PNG data'

    def test_no_temp_files_left(self, tmp_path):
        write_text_atomic('hello', tmp_path / 'a.txt')
        assert [p.name for p in tmp_path.iterdir()] == ['a.txt']

    def test_overwrite(self, tmp_path):
        output_path = tmp_path / 'report.json'
        write_text_atomic('old', output_path)
        write_text_atomic('new', output_path)

        assert output_path.read_text(encoding='utf-8') == 'new'

    def test_text_utf8(self, tmp_path):
        result = write_text_atomic('Größe', tmp_path / 'u.txt')
        assert result['bytes_written'] == len('Größe'.encode('utf-8'))

    def test_write_json(self, tmp_path):
        output_path = tmp_path / 'report.json'
        result = write_json_atomic({'total_rows': 3, 'data_sample': [{'x': 1}]}, output_path)

        assert result['status'] == 'completed'
        with open(output_path) as f:
            assert json.load(f) == {'total_rows': 3, 'data_sample': [{'x': 1}]}

    def test_json_serialization_failure(self, tmp_path):
        output_path = tmp_path / 'bad.json'
        result = write_json_atomic({'nan': float('nan'), 'cycle': None}, output_path)
        assert result['status'] == 'completed'

        circular = {}
        circular['self'] = circular
        result = write_json_atomic(circular, tmp_path / 'circular.json')

        assert result['status'] == 'failed'
        assert 'JSON serialization failed' in result['error']
        assert not (tmp_path / 'circular.json').exists()

    def test_replace_failure_cleans_up(self, tmp_path):
        output_path = tmp_path / 'report.json'

        with patch('reports.atomic_writer.os.replace', side_effect=OSError('disk full')):
            result = write_text_atomic('data', output_path)

        assert result['status'] == 'failed'
        assert 'disk full' in result['error']
        assert list(tmp_path.iterdir()) == []


class TestVerifyFileIntegrity:
    """Tests for verify_file_integrity."""

    def test_existing_file(self, tmp_path):
        path = tmp_path / 'f.bin'
        path.write_bytes(b'12345')

        assert verify_file_integrity(path) is True
        assert verify_file_integrity(path, expected_size=5) is True
        assert verify_file_integrity(path, expected_size=4) is False

    def test_missing_file(self, tmp_path):
        assert verify_file_integrity(tmp_path / 'missing') is False
