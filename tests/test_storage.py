import json

from scraperlib.storage import JsonlWriter


def read_jsonl(path):
    with path.open("r", encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


def test_jsonl_writer_writes_and_appends(tmp_path):
    out = tmp_path / "nested" / "out.jsonl"
    with JsonlWriter(str(out)) as writer:
        writer.write({"url": "https://a.com", "data": "<p>é</p>"})
    assert writer.records == 1
    assert read_jsonl(out) == [{"url": "https://a.com", "data": "<p>é</p>"}]

    with JsonlWriter(str(out), append=True) as writer:
        writer.write({"url": "https://a.com/2", "error": "boom"})
    assert len(read_jsonl(out)) == 2


def test_jsonl_writer_defaults_to_stdout(capsys):
    writer = JsonlWriter()
    writer.write({"data": "x"})
    writer.close()
    assert json.loads(capsys.readouterr().out) == {"data": "x"}
