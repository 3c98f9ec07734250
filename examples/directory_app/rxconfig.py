"""Reflex configuration for the employee directory demo app."""

import reflex as rx

config = rx.Config(
    app_name="directory_app",
    plugins=[rx.plugins.SitemapPlugin()],
)
