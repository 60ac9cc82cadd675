import logging
import numpy as np

from numpy.typing import ArrayLike
from sklearn.utils.validation import column_or_1d
from typing import Any


logger = logging.getLogger(__file__)


def _round_interval(left, right, digits=6):
    scale = 10**digits
    left = min(max(left, 0.0), 1.0)
    right = min(max(right, 0.0), 1.0)
    return (
        float(np.floor(left * scale) / scale),
        float(np.ceil(right * scale) / scale),
    )


def true_positives(
        y_true: ArrayLike, y_pred: ArrayLike, pos_label: Any = 1
) -> int:
    y_true, y_pred = column_or_1d(y_true), column_or_1d(y_pred)
    return int(np.sum((y_true == pos_label) & (y_pred == pos_label)))


def true_negatives(
        y_true: ArrayLike, y_pred: ArrayLike, pos_label: Any = 1
) -> int:
    y_true, y_pred = column_or_1d(y_true), column_or_1d(y_pred)
    return int(np.sum((y_true != pos_label) & (y_pred != pos_label)))


def false_positives(
        y_true: ArrayLike, y_pred: ArrayLike, pos_label: Any = 1
) -> int:
    y_true, y_pred = column_or_1d(y_true), column_or_1d(y_pred)
    return int(np.sum((y_true != pos_label) & (y_pred == pos_label)))


def false_negatives(
        y_true: ArrayLike, y_pred: ArrayLike, pos_label: Any = 1
) -> int:
    y_true, y_pred = column_or_1d(y_true), column_or_1d(y_pred)
    return int(np.sum((y_true == pos_label) & (y_pred != pos_label)))


def _rate(numerator: int, denominator: int, message: str) -> float:
    if denominator == 0:
        logger.warning(message)
        return 0.0
    return numerator / denominator


def sensitivity_score(
    y_true: ArrayLike, y_pred: ArrayLike, pos_label: Any = 1
) -> float:
    """Person-level true positive rate (beta).

    Fraction of individuals who truly show the effect whose
    person-level test came out significant.
    """
    tp = true_positives(y_true, y_pred, pos_label)
    fn = false_negatives(y_true, y_pred, pos_label)
    return _rate(tp, tp + fn, "No positive examples in sample. Returning 0.0")


def false_positive_rate(
    y_true: ArrayLike, y_pred: ArrayLike, pos_label: Any = 1
) -> float:
    """Person-level false positive rate (alpha)."""
    fp = false_positives(y_true, y_pred, pos_label)
    tn = true_negatives(y_true, y_pred, pos_label)
    return _rate(fp, fp + tn, "No negative examples in sample. Returning 0.0")
