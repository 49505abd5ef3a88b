"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- transactions: 내원 정보
- expenses: 지출 내역
- cash: 시재 기록, 마감, 전일 시재
- consultations: 상담 내역
"""
