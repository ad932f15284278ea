import logging
import pandas as pd

from exam_extractor.constants import RESULT_COLS
from exam_extractor.models import ExtractionResponse

logger = logging.getLogger(__name__)


def results_frame(response: ExtractionResponse, drop_empty_units: bool = False) -> pd.DataFrame:
    """
    Return the extracted results as a DataFrame with one row per exam.

    Args:
        response: The extraction response.
        drop_empty_units: Drop the unit column when no result reports a unit
            (line mode never does).
    """
    df = pd.DataFrame([r.to_dict() for r in response.results], columns=RESULT_COLS)
    if drop_empty_units and (df.empty or (df["unit"] == "").all()):
        df = df.drop(columns=["unit"])
    return df


def results_csv(response: ExtractionResponse) -> str:
    df = results_frame(response)
    logger.info(f"Exporting {len(df)} results as CSV")
    return df.to_csv(index=False)
