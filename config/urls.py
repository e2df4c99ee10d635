"""
URL configuration for the BuildIQ project.
"""
from django.contrib import admin
from django.http import HttpResponse
from django.urls import path
from ninja import NinjaAPI

api = NinjaAPI(
    title="BuildIQ API",
    version="1.0.0",
    description="Apartment rental and building management API",
    docs_url="/docs",
)

from apps.identity.api import router as identity_router
from apps.registry.api import router as registry_router
from apps.membership.api import router as membership_router
from apps.ledger.api import router as ledger_router
from apps.governance.api import router as governance_router

api.add_router("/", identity_router)
api.add_router("/", registry_router)
api.add_router("/", membership_router)
api.add_router("/", ledger_router)
api.add_router("/", governance_router)


def index(request):
    return HttpResponse("BuildIQ server is running")


urlpatterns = [
    path('admin/', admin.site.urls),
    path('', index),
    path('', api.urls),
]
