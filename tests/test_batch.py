from qrdelta.batch import (
    NO_QR_ERROR, UNREADABLE_ERROR, analyze_batch, analyze_image, analyze_paths, summarize,
)

PAYLOADS = {
    b"img-a": "https://x/?id=1&createTime=2024-01-01 10:00:00",
    b"img-b": "id=2&createTime=2024-01-01 11:00:00",
}

def fake_decoder(data: bytes):
    if data == b"boom":
        raise RuntimeError("corrupted stream")
    return PAYLOADS.get(data)

def test_analyze_image_ok():
    rec = analyze_image("a.png", b"img-a", decoder=fake_decoder)
    assert rec.ok
    assert rec.raw_text == PAYLOADS[b"img-a"]
    assert rec.params["id"] == "1"
    assert rec.parsed_time.formatted == "2024-01-01 10:00:00"

def test_analyze_image_without_qr():
    rec = analyze_image("blank.png", b"nothing", decoder=fake_decoder)
    assert not rec.ok
    assert rec.error == NO_QR_ERROR
    assert rec.raw_text is None and len(rec.params) == 0

def test_decoder_crash_is_kept_on_the_record():
    rec = analyze_image("bad.png", b"boom", decoder=fake_decoder)
    assert not rec.ok and "corrupted stream" in rec.error

def test_batch_keeps_order_and_survives_failures():
    files = [("b.png", b"img-b"), ("bad.png", b"boom"), ("a.png", b"img-a"), ("x.png", b"?")]
    records = analyze_batch(files, decoder=fake_decoder)
    assert [r.source for r in records] == ["b.png", "bad.png", "a.png", "x.png"]
    summary = summarize(records)
    assert (summary.total, summary.decoded, summary.failed) == (4, 2, 2)
    assert summary.message == "Analyse terminée : 4 fichier(s), 2 décodé(s)"

def test_real_decoder_on_garbage_bytes():
    rec = analyze_image("notes.txt", b"definitely not an image")
    assert rec.error == NO_QR_ERROR

def test_analyze_paths_reports_unreadable_files(tmp_path):
    (tmp_path / "a.png").write_bytes(b"img-a")
    records = analyze_paths([str(tmp_path / "a.png"), str(tmp_path / "gone.png")], decoder=fake_decoder)
    assert [r.source for r in records] == ["a.png", "gone.png"]
    assert records[0].ok
    assert records[1].error.startswith(UNREADABLE_ERROR)
    assert records[1].error != NO_QR_ERROR
