import json
import re

from ticket_intel.models import LLMUsage
from ticket_intel.usage import UsageRecorder, generate_extraction_id


def test_extraction_id_shape():
    first, second = generate_extraction_id(), generate_extraction_id()
    assert re.fullmatch(r"extract_\d+_[a-z0-9]{9}", first)
    assert first != second


def test_append_writes_one_json_line(tmp_path):
    path = tmp_path / "usage.jsonl"
    recorder = UsageRecorder(path=str(path))
    recorder._append({"model": "gemini-2.0-flash-lite", "tokens_in": 10})
    recorder._append({"model": "gemini-2.5-flash", "tokens_in": 20})

    lines = path.read_text().splitlines()
    assert [json.loads(line)["tokens_in"] for line in lines] == [10, 20]


def test_record_never_raises():
    recorder = UsageRecorder(path=None)
    recorder.record(LLMUsage(model="gemini-2.0-flash-lite", tokens_in=100, tokens_out=20))
    recorder.record(object())


def test_unwritable_path_is_only_logged(tmp_path):
    recorder = UsageRecorder(path=str(tmp_path / "missing" / "usage.jsonl"))
    recorder._append({"model": "x"})
