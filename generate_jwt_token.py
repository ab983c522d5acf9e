#!/usr/bin/env python3
"""Generate a JWT (or bookmarklet API token) for calling the Eden API."""

import sys

from dotenv import load_dotenv

load_dotenv()

from backend.src.services.auth import ApiTokenService, AuthService, LOCAL_USER_ID
from backend.src.services.config import get_config


def generate_token(user_id=LOCAL_USER_ID):
    """Generate a JWT token for the specified user."""
    try:
        auth_service = AuthService(config=get_config())
        token = auth_service.create_jwt(user_id)

        print(f"Generated JWT token for user '{user_id}':")
        print(f"Authorization: Bearer {token}")
        return token

    except Exception as e:
        print(f"Error generating token: {e}")
        print("Make sure JWT_SECRET_KEY is set in your environment")
        return None


def generate_api_token(user_id=LOCAL_USER_ID):
    """Print the user's bookmarklet API token, creating it if needed."""
    token = ApiTokenService().get_or_create_api_token(user_id)
    print(f"Bookmarklet API token for user '{user_id}':")
    print(token)
    return token


if __name__ == "__main__":
    args = [arg for arg in sys.argv[1:] if arg != "--api-token"]
    user_id = args[0] if args else LOCAL_USER_ID
    if "--api-token" in sys.argv[1:]:
        generate_api_token(user_id)
    else:
        generate_token(user_id)
