"""用 refresh token 换取新的 Whoop 访问令牌

使用方法:
    python scripts/refresh_token.py <client_id> <client_secret> <refresh_token> [--write-env]
"""
import argparse
import asyncio
import sys
import os

# 添加项目根目录到路径
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from whoop_insight.config import settings
from whoop_insight.exceptions import WhoopAPIError
from whoop_insight.integrations.base import Credentials, EnvFileCredentialStore
from whoop_insight.integrations.whoop.client import WhoopClient


def save_tokens(credentials: Credentials, env_file: str) -> bool:
    """写入.env，失败时提示手动更新"""
    try:
        EnvFileCredentialStore(env_file).save(credentials)
    except OSError as e:
        print(f"⚠️  Could not write {env_file}: {e}")
        print(f"Update your .env file with: WHOOP_ACCESS_TOKEN={credentials.access_token}")
        return False
    print(f"✅ Saved tokens to {env_file}")
    return True


async def refresh(args) -> int:
    credentials = Credentials(
        access_token="",
        refresh_token=args.refresh_token,
        client_id=args.client_id,
        client_secret=args.client_secret,
    )

    print("🔄 Refreshing access token...")
    async with WhoopClient(credentials) as client:
        try:
            refreshed = await client.refresh_access_token()
        except WhoopAPIError as e:
            print(f"❌ Token refresh failed: {e}")
            if e.body:
                print(e.body)
            print()
            print("Common issues:")
            print("- Refresh token expired (they last much longer but do expire)")
            print("- Invalid client credentials")
            print("- Refresh token already used (some implementations are single-use)")
            return 1

    print("✅ Successfully refreshed tokens!")
    print()
    print("📝 Your new tokens:")
    print(f"Access Token:  {refreshed.access_token}")
    if refreshed.refresh_token != args.refresh_token:
        print(f"Refresh Token: {refreshed.refresh_token}")
    if args.write_env:
        return 0 if save_tokens(refreshed, args.env_file) else 1

    print()
    print(f"Update your .env file with: WHOOP_ACCESS_TOKEN={refreshed.access_token}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Refresh a Whoop access token")
    parser.add_argument("client_id", help="Whoop app client ID")
    parser.add_argument("client_secret", help="Whoop app client secret")
    parser.add_argument("refresh_token", help="Refresh token from a previous authorization")
    parser.add_argument("--write-env", action="store_true", help="Write the new tokens to the .env file")
    parser.add_argument("--env-file", default=settings.ENV_FILE_PATH, help="Where to write the tokens")
    args = parser.parse_args()

    sys.exit(asyncio.run(refresh(args)))


if __name__ == "__main__":
    main()
