"""
Derived, read-only task views for presentation
"""

from .task_views import (
    sort_reverse_chronological,
    group_by_date,
    filter_by_type,
    filter_by_date,
    todays_tasks,
    recent_tasks,
    history,
    format_date_header,
    variant_label
)

__all__ = [
    'sort_reverse_chronological',
    'group_by_date',
    'filter_by_type',
    'filter_by_date',
    'todays_tasks',
    'recent_tasks',
    'history',
    'format_date_header',
    'variant_label'
]
