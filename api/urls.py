# api/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from . import ai_views, views

router = DefaultRouter()
router.register(r'donors', views.DonorViewSet, basename='donor')
router.register(r'donations', views.DonationRecordViewSet, basename='donation')
router.register(r'emergency-requests', views.EmergencyRequestViewSet, basename='emergency-request')

app_name = 'api'

urlpatterns = [
    path('', include(router.urls)),

    path('stats/', views.dashboard_stats, name='dashboard-stats'),
    path('ai/smart-matching/', ai_views.smart_matching, name='ai-smart-matching'),
    path('ai/blood-prediction/', ai_views.blood_prediction, name='ai-blood-prediction'),
]

# Available endpoints:
# GET/POST  /api/donors/                                  - List / register donors
# GET       /api/donors/{id}/donations/                   - Donor's donation history
# GET/POST  /api/donations/                               - List / record donations
# POST      /api/donations/{id}/complete/                 - pending -> complete
# POST      /api/donations/{id}/reject/                   - pending -> rejected
# GET/POST  /api/emergency-requests/                      - List / create requests
# GET       /api/emergency-requests/{id}/matches/         - Ranked donor matches
# POST      /api/emergency-requests/{id}/notify_donors/   - Notify shortlisted donors
# GET       /api/emergency-requests/prioritized/          - Open requests by priority
# GET       /api/stats/                                   - Dashboard statistics
# POST      /api/ai/smart-matching/                       - AI donor ranking
# POST      /api/ai/blood-prediction/                     - AI demand prediction
