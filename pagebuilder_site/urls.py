from django.urls import path

from pages import api_views


DASHBOARD_KINDS = [
    ("proposals", "proposal"),
    ("progress", "progress"),
    ("meta", "meta"),
]

urlpatterns = [
    path("api/auth/login", api_views.auth_login),
    path("api/auth/logout", api_views.auth_logout),
    path("api/auth/me", api_views.auth_me),
    path("api/dashboard/uploads", api_views.dashboard_upload),
    path("api/dashboard/uploads/delete", api_views.dashboard_upload_delete),
    path("api/dashboard/proposals/<uuid:page_id>/duplicate", api_views.dashboard_proposal_duplicate),
    path("api/public/p/<str:slug>", api_views.public_proposal),
    path("api/public/progress/<str:slug>", api_views.public_gated_page, {"kind": "progress"}),
    path("api/public/progress/<str:slug>/unlock", api_views.public_unlock, {"kind": "progress"}),
    path("api/public/meta/<str:slug>", api_views.public_gated_page, {"kind": "meta"}),
    path("api/public/meta/<str:slug>/unlock", api_views.public_unlock, {"kind": "meta"}),
    path("uploads/<path:path>", api_views.serve_upload),
]

for segment, kind in DASHBOARD_KINDS:
    urlpatterns += [
        path(f"api/dashboard/{segment}", api_views.dashboard_list, {"kind": kind}),
        path(f"api/dashboard/{segment}/create", api_views.dashboard_create, {"kind": kind}),
        path(f"api/dashboard/{segment}/<uuid:page_id>", api_views.dashboard_detail, {"kind": kind}),
        path(f"api/dashboard/{segment}/<uuid:page_id>/update", api_views.dashboard_update, {"kind": kind}),
        path(f"api/dashboard/{segment}/<uuid:page_id>/delete", api_views.dashboard_delete, {"kind": kind}),
    ]
