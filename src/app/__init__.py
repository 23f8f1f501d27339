"""
App layer: HTTP 서버 (FastAPI).

역할:
- 업로드/fiddle 저장 요청 → PublishService
- 관리자 라우트, 게시된 앱 서빙
- ⚠️ 저장소 일관성 로직 없음 (core 에 위임)
"""
