"""
Cookie JWT Authentication - Creator Platform

The dashboard front end keeps the access token in an ``access_token``
cookie. API clients send the usual ``Authorization: Bearer`` header; that
case is left to the stock simplejwt class listed after this one.

Author: CP Development Team
Version: 1.0.0
"""

from typing import Optional, TypeVar

from django.contrib.auth.models import AbstractBaseUser
from rest_framework import HTTP_HEADER_ENCODING
from rest_framework.request import Request
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.models import TokenUser
from rest_framework_simplejwt.tokens import Token

ACCESS_TOKEN_COOKIE = "access_token"

AuthUser = TypeVar("AuthUser", AbstractBaseUser, TokenUser)


class CookieJWTAuthentication(JWTAuthentication):
    """Reads the JWT from the cookie instead of the header."""

    www_authenticate_realm = "api"
    media_type = "application/json"

    def authenticate(self, request: Request) -> Optional[tuple[AuthUser, Token]]:
        cookie = request.COOKIES.get(ACCESS_TOKEN_COOKIE) or None
        if cookie is None:
            return None

        raw_token = cookie.encode(HTTP_HEADER_ENCODING)
        validated_token = self.get_validated_token(raw_token)
        return self.get_user(validated_token), validated_token
