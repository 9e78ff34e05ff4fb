# medlab/__init__.py

"""
임상 검사실 주문(Order) / 검사(Exam) / 결과(Result) 워크플로 API의 메인 패키지입니다.

FastAPI 애플리케이션의 진입점(main.py)과
공통 설정, 데이터베이스 연결, 예외 체계, 인증 유틸리티를 담는 core 서브패키지,
그리고 환자(pat), 검사 카탈로그(cat), 검사 워크플로(lab) 도메인을 담는
domains 서브패키지로 구성됩니다.
"""

APP_NAME = "MedLab Workflow API"
APP_VERSION = "0.1.0"
API_PREFIX = "/api/v1"  # API 라우트의 공통 접두사 (main.py에서 적용)

__version__ = APP_VERSION
__title__ = APP_NAME
__description__ = "Clinical laboratory order, exam and result workflow engine."
__all__ = []
