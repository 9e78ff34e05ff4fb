# medlab/domains/lab/classifier.py

"""
참고 범위 기반 이상값 판정기 모듈입니다.

판정은 항목의 data_type이 numeric이고 숫자 값이 있을 때만 적용됩니다.
- 값 < reference_min  → 이상, 방향 low,  플래그 "L"
- 값 > reference_max  → 이상, 방향 high, 플래그 "H"
- 그 외               → 정상, 방향 none, 플래그 없음
- 위급 항목(is_critical)이면서 이상값이면 위급으로 표시하고 플래그에 "C"를 붙입니다.

text / boolean / select 항목은 이 규칙으로 이상 판정하지 않습니다.
결과 행의 파생 필드는 apply_classification()에서만 기록하며,
결과를 만들거나 값을 고칠 때마다 다시 호출해야 합니다.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from medlab.domains.cat.models import ParameterDataType

from .models import AbnormalityType


@dataclass(frozen=True)
class Classification:
    is_abnormal: bool
    abnormality_type: str
    is_critical: bool
    flags: str


NORMAL = Classification(
    is_abnormal=False,
    abnormality_type=AbnormalityType.NONE.value,
    is_critical=False,
    flags="",
)


def to_decimal(value: Any) -> Optional[Decimal]:
    """float/int/str/Decimal 값을 Decimal로 맞춥니다. float은 문자열을 거쳐 이진 오차를 피합니다."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def classify(value_numeric: Any, parameter: Any) -> Classification:
    """값과 항목 정의(data_type, reference_min/max, is_critical)로 이상 여부를 판정합니다."""
    if parameter.data_type != ParameterDataType.NUMERIC.value or value_numeric is None:
        return NORMAL

    value = to_decimal(value_numeric)
    reference_min = to_decimal(parameter.reference_min)
    reference_max = to_decimal(parameter.reference_max)

    if reference_min is not None and value < reference_min:
        direction, flags = AbnormalityType.LOW.value, "L"
    elif reference_max is not None and value > reference_max:
        direction, flags = AbnormalityType.HIGH.value, "H"
    else:
        return NORMAL

    is_critical = bool(parameter.is_critical)
    if is_critical:
        flags += "C"

    return Classification(
        is_abnormal=True,
        abnormality_type=direction,
        is_critical=is_critical,
        flags=flags,
    )


def apply_classification(result: Any, parameter: Any) -> Classification:
    """결과 행의 파생 필드(is_abnormal, abnormality_type, is_critical, flags)를 다시 계산해 기록합니다."""
    classification = classify(result.value_numeric, parameter)
    result.is_abnormal = classification.is_abnormal
    result.abnormality_type = classification.abnormality_type
    result.is_critical = classification.is_critical
    result.flags = classification.flags
    return classification
