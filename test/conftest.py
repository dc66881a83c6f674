import os

# common.settings 는 import 시점에 환경변수를 읽으므로 테스트 수집 전에 설정
os.environ.setdefault("RPC_URL", "http://127.0.0.1:8545")
os.environ.setdefault("TOKEN_ADDRESS", "0x1111111111111111111111111111111111111111")
os.environ.setdefault("SLACK_WEBHOOK_URL", "your_slack_webhook_url")
