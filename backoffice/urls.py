"""
URL configuration for the backoffice project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""
from django.urls import path, include
from django.views.generic import RedirectView

from . import health_check

urlpatterns = [
    # Redirect root URL to admin panel dashboard (login when signed out)
    path('', RedirectView.as_view(pattern_name='admin_panel:dashboard', permanent=False)),

    # Back-office screens
    path('dashboard/', include('admin_panel.urls')),

    # Container orchestration probes
    path('health/', health_check.health_check, name='health_check'),
    path('health/ready/', health_check.readiness_check, name='readiness_check'),
    path('health/live/', health_check.liveness_check, name='liveness_check'),
]
