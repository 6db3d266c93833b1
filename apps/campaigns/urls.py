from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'campaigns'

router = DefaultRouter()
router.register(r'', views.CampaignReconciliationViewSet, basename='campaign')

urlpatterns = [
    # GET    /api/campaigns/                           - List campaigns
    # GET    /api/campaigns/integrity/                 - Audit every campaign
    # GET    /api/campaigns/{id}/                      - Get campaign
    # GET    /api/campaigns/{id}/orders/               - Orders with items
    # POST   /api/campaigns/{id}/distribute-shipping/  - Redistribute shipping
    # POST   /api/campaigns/{id}/consolidate/          - Merge duplicate orders
    # GET    /api/campaigns/{id}/integrity/            - Audit one campaign
    path('', include(router.urls)),
]
