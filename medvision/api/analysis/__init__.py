# medvision/api/analysis/__init__.py
"""
이미지 분석 API 블루프린트와 분석 오케스트레이터
"""
