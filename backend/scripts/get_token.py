"""Whoop OAuth 令牌获取助手

使用方法:
    # 第一步：生成授权URL
    python scripts/get_token.py <client_id> <client_secret>

    # 第二步：用授权码换取令牌（写入 .env）
    python scripts/get_token.py <client_id> <client_secret> <authorization_code>
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
from whoop_insight.integrations.whoop.constants import DEFAULT_AUTH_STATE


def print_auth_url(client: WhoopClient, client_id: str):
    auth_url = client.get_authorization_url(state=DEFAULT_AUTH_STATE, client_id=client_id)

    print("🔗 STEP 1: Open this URL in your browser to authorize the app:")
    print()
    print(auth_url)
    print()
    print("After authorizing, you'll be redirected to a URL like:")
    print(f"{settings.WHOOP_REDIRECT_URI}?code=AUTHORIZATION_CODE&state={DEFAULT_AUTH_STATE}")
    print()
    print("📋 STEP 2: Copy the 'code' parameter and run:")
    print(f"python scripts/get_token.py {client_id} <client_secret> <AUTHORIZATION_CODE>")
    print()
    print("⚠️  Note: The redirect URL might show an error page, that's OK!")
    print("   Just copy the 'code' parameter from the URL bar.")


async def exchange_code(client: WhoopClient, args) -> int:
    print("🔄 Exchanging authorization code for access token...")
    try:
        token_data = await client.exchange_code_for_token(
            args.authorization_code, client_id=args.client_id, client_secret=args.client_secret
        )
    except WhoopAPIError as e:
        print(f"❌ Token request failed: {e}")
        if e.body:
            print(e.body)
        print()
        print("Common issues:")
        print("- Authorization code already used (codes are single-use)")
        print("- Authorization code expired (they expire quickly)")
        print("- Wrong redirect URI (must match exactly)")
        print("- Invalid client credentials")
        return 1

    expires_in = int(token_data.get("expires_in") or 0)
    print("✅ Successfully obtained tokens!")
    print()
    print("📝 Your tokens:")
    print(f"Access Token:  {token_data['access_token']}")
    if token_data.get("refresh_token"):
        print(f"Refresh Token: {token_data['refresh_token']}")
    print(f"Expires in:    {expires_in} seconds ({expires_in / 3600:.1f} hours)")
    print(f"Scopes:        {token_data.get('scope', '')}")
    print()

    store = EnvFileCredentialStore(args.env_file)
    try:
        store.save(
            Credentials(
                access_token=token_data["access_token"],
                refresh_token=token_data.get("refresh_token") or None,
            )
        )
    except OSError as e:
        print(f"⚠️  Could not write {args.env_file}: {e}")
        print("Please add WHOOP_ACCESS_TOKEN / WHOOP_REFRESH_TOKEN manually.")
        return 1

    print(f"✅ Saved tokens to {args.env_file}")
    print("Add WHOOP_CLIENT_ID and WHOOP_CLIENT_SECRET as well to enable automatic refresh.")
    return 0


async def run(args) -> int:
    credentials = Credentials(access_token="", client_id=args.client_id, client_secret=args.client_secret)
    async with WhoopClient(credentials) as client:
        if not args.authorization_code:
            print_auth_url(client, args.client_id)
            return 0
        return await exchange_code(client, args)


def main():
    parser = argparse.ArgumentParser(description="Whoop OAuth Token Helper")
    parser.add_argument("client_id", help="Whoop app client ID")
    parser.add_argument("client_secret", help="Whoop app client secret")
    parser.add_argument("authorization_code", nargs="?", help="Authorization code from the callback URL")
    parser.add_argument("--env-file", default=settings.ENV_FILE_PATH, help="Where to write the tokens")
    args = parser.parse_args()

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
