# medlab/domains/models/__init__.py

"""
모든 도메인의 SQLModel 모델을 한 곳에서 임포트합니다.
SQLModel.metadata가 모든 테이블을 인식하도록 보장합니다.
"""

# pat (Patient)
from medlab.domains.pat.models import Patient

# cat (ExamCategory, SampleType, ExamType, ExamParameter)
from medlab.domains.cat.models import ExamCategory, SampleType, ExamType, ExamParameter

# lab (Order, OrderExam, ExamResult, IdSequence)
from medlab.domains.lab.models import Order, OrderExam, ExamResult, IdSequence


__all__ = [
    # pat
    "Patient",
    # cat
    "ExamCategory", "SampleType", "ExamType", "ExamParameter",
    # lab
    "Order", "OrderExam", "ExamResult", "IdSequence",
]
