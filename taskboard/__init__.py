"""
Taskboard - 의존성 그래프 기반 Task 관리 서버
"""

__version__ = "1.0.0"
