from dataclasses import replace
from pathlib import Path

import pytest

from exam_extractor.chains.extract import extract_lab_data
from exam_extractor.config import load_settings

# Calls the real Gemini API; conftest.py skips these with --no-live
pytestmark = pytest.mark.live


def minimal_report_pdf(lines):
    """Build a one-page PDF with the given text lines (xref offsets computed)."""
    text_ops = ["BT", "/F1 14 Tf", "72 720 Td", "18 TL"]
    for ln in lines:
        text_ops.append(f"({ln}) Tj T*")
    text_ops.append("ET")
    stream = "\n".join(text_ops).encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Resources << /Font << /F1 5 0 R >> >> /Contents 4 0 R >>",
        b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for i, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{i} 0 obj\n".encode() + body + b"\nendobj\n"
    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n0000000000 65535 f \n".encode()
    for off in offsets:
        out += f"{off:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_at}\n%%EOF\n".encode()
    return bytes(out)


@pytest.fixture
def live_settings(live_api_key):
    return load_settings().with_api_key(live_api_key)


def test_live_schema_extraction_finds_glucose(tmp_path, live_settings):
    fp = tmp_path / "laudo.pdf"
    fp.write_bytes(minimal_report_pdf([
        "LABORATORIO EXEMPLO - RESULTADOS",
        "Glicose: 95 mg/dL   (Referencia: 70 a 99 mg/dL)",
        "Ureia: 32 mg/dL   (Referencia: 15 a 45 mg/dL)",
    ]))
    res = extract_lab_data(fp, settings=replace(live_settings, mode="schema"))
    by_name = {r.parameter.lower(): r for r in res.results}
    assert any("glicose" in k for k in by_name), f"Glicose not found in {res.results}"
    glicose = next(r for k, r in by_name.items() if "glicose" in k)
    assert glicose.value == "95"
    assert res.raw_text.splitlines()[0].startswith(res.results[0].parameter)


def main(argv=None):
    import sys
    import pytest as _pytest
    test_path = str(Path(__file__).resolve())
    rc = _pytest.main([test_path] if argv is None else argv + [test_path])
    sys.exit(rc)


if __name__ == "__main__":
    main()
