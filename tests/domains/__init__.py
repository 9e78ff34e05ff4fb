# tests/domains/__init__.py

"""
도메인(pat, cat, lab)과 서비스 계층에 대한 테스트 모듈을 모아 둔 패키지입니다.
"""

__title__ = "MedLab Domain Tests"
__description__ = "Categorized tests for each business domain in the MedLab application."
__version__ = "0.1.0"
__all__ = []
