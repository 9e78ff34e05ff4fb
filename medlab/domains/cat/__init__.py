# medlab/domains/cat/__init__.py

"""
'cat' 도메인 (검사 카탈로그) 패키지입니다.

검사 분류(ExamCategory), 검체 종류(SampleType), 검사 종류(ExamType),
검사 항목(ExamParameter)과 참고 범위 같은 읽기 전용 기준 정보를 제공합니다.
워크플로 엔진은 항목 정의를 읽기만 하고 변경하지 않습니다.
`seed.py`는 개발 환경용 기본 카탈로그를 생성합니다.
"""

__title__ = "MedLab Exam Catalog Domain"
__description__ = "Read-only exam catalog: categories, sample types, exam types and parameters."
__version__ = "0.1.0"
__all__ = []
