"""
Scent Concierge
대화형 향수 추천 어시스턴트 백엔드
"""

__version__ = "1.0.0"
