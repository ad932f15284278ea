import io
from pathlib import Path

import pandas as pd

from exam_extractor.models import ExamResult, ExtractionResponse, ParseMethod
from exam_extractor.tools.results_table import results_csv, results_frame


def make_response(results, method=ParseMethod.JSON):
    return ExtractionResponse(results=tuple(results), raw_text="", parse_method=method)


def test_results_frame_columns_and_order():
    res = make_response([ExamResult("Glicose", "95", "mg/dL"), ExamResult("TSH", "2.1", "µUI/mL")])
    df = results_frame(res)
    assert list(df.columns) == ["parameter", "value", "unit"]
    assert df["parameter"].tolist() == ["Glicose", "TSH"]
    assert df.iloc[1]["unit"] == "µUI/mL"


def test_results_frame_empty_keeps_columns():
    df = results_frame(make_response([]))
    assert df.empty
    assert list(df.columns) == ["parameter", "value", "unit"]


def test_unit_column_dropped_only_when_all_empty():
    lines = make_response([ExamResult("Glicose", "95"), ExamResult("Ureia", "30")], ParseMethod.LINES)
    assert "unit" not in results_frame(lines, drop_empty_units=True).columns
    mixed = make_response([ExamResult("Glicose", "95", "mg/dL"), ExamResult("pH", "6.0")])
    assert "unit" in results_frame(mixed, drop_empty_units=True).columns


def test_results_csv_round_trips_through_pandas():
    res = make_response([ExamResult("Relação A/G", "1.4", ""), ExamResult("Sódio", "140", "mEq/L")])
    df = pd.read_csv(io.StringIO(results_csv(res)), keep_default_na=False, dtype=str)
    assert df.to_dict(orient="records") == [
        {"parameter": "Relação A/G", "value": "1.4", "unit": ""},
        {"parameter": "Sódio", "value": "140", "unit": "mEq/L"},
    ]


def main(argv=None):
    import sys
    import pytest as _pytest
    test_path = str(Path(__file__).resolve())
    rc = _pytest.main([test_path] if argv is None else argv + [test_path])
    sys.exit(rc)


if __name__ == "__main__":
    main()
