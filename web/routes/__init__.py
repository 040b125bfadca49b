"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- transactions: 거래 생성/조회/수정/삭제
- accounts: 계정 관리
- reports: 재무 보고서
"""
