"""
casa_sync
=========

This package provides the main entry point for the Casa Control Sync library, exposing high-level classes for listing and toggling home-automation devices stored in Supabase and keeping them in sync in real time.

Re-exports:
------------
- All public classes and functions from `casa_sync.lib.dashboard`.
- `DashboardView` and `DeviceCard` from the presentation layer.
- `trigger_device_webhook` and `is_webhook_url` from the webhook client.

Usage:
------
Import from this package to access the API:

    from casa_sync import CasaDashboard, DashboardView

See the documentation in `casa_sync.lib.dashboard` for details on available classes and methods.
"""

from casa_sync.lib.dashboard import *
from casa_sync.infrastructure.webhook.webhook_client import (
    is_webhook_url,
    trigger_device_webhook,
)
from casa_sync.presentation.dashboard_view import DashboardView, DashboardViewState
from casa_sync.presentation.device_card import DeviceCard
from casa_sync.presentation.toasts import Toast
