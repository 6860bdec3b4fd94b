"""
Health check endpoints for container orchestration
"""
from django.http import JsonResponse

from admin_panel.gateway import AdminSession, ApiGateway, GatewayError


def health_check(request):
    """
    Basic health check endpoint
    Returns 200 if service is running
    """
    return JsonResponse({
        'status': 'healthy',
        'service': 'store-backoffice'
    })


def readiness_check(request):
    """
    Readiness check - verifies the store API answers.
    Any HTTP reply counts; only network failures and timeouts make us not ready.
    """
    health_status = {
        'status': 'ready',
        'checks': {}
    }

    gateway = ApiGateway(AdminSession(request.session))
    try:
        response = gateway.get('')
        health_status['checks']['api'] = f'ok ({response.status_code})'
    except GatewayError as e:
        health_status['status'] = 'not_ready'
        health_status['checks']['api'] = f'error: {str(e)}'

    status_code = 200 if health_status['status'] == 'ready' else 503
    return JsonResponse(health_status, status=status_code)


def liveness_check(request):
    """
    Liveness check - verifies service is alive (not deadlocked)
    Simple check that returns 200
    """
    return JsonResponse({
        'status': 'alive'
    })
