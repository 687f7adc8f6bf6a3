from django.urls import path

from .views import EntryCompleteView, EntryDetailView, EntryExpireView, EntryListCreateView, ReadingCreateView

app_name = "acclimation"

urlpatterns = [
    path("entries/", EntryListCreateView.as_view(), name="entry-list"),
    path("entries/<int:entry_id>/", EntryDetailView.as_view(), name="entry-detail"),
    path("entries/<int:entry_id>/readings/", ReadingCreateView.as_view(), name="entry-readings"),
    path("entries/<int:entry_id>/expire/", EntryExpireView.as_view(), name="entry-expire"),
    path("entries/<int:entry_id>/complete/", EntryCompleteView.as_view(), name="entry-complete"),
]

# EOF
