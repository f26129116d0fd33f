"""Real-time order notifications for the grocery storefront.

The server half lives in the ``application``, ``infrastructure`` and
``interfaces`` packages; the staff-side listener lives in
:mod:`order_alerts.client`.
"""
