"""
Posts App Configuration - Creator Platform

Django app configuration for the Posts app.

Features:
- Posts sent to customers, followers and affiliates
- Post page and dashboard presenters

Author: CP Development Team
Version: 1.0.0
"""

from django.apps import AppConfig


class PostsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'posts'
    verbose_name = 'Posts'
