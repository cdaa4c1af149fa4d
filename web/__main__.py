"""
Web 진입점

실행 방법:
    python -m web
"""

import uvicorn

from core.config.loader import get_settings
from core.logging import setup_logging

if __name__ == "__main__":
    # 로깅 설정 (콘솔 + 파일)
    setup_logging("web")

    settings = get_settings()
    uvicorn.run(
        "web.app:app",
        host=settings.values.web_host,
        port=settings.values.web_port,
        reload=False,
        log_config=None,
    )
