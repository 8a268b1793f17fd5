"""One-off GitLab lookups used while configuring discovery."""

from typing import Dict, List

from .api_client import GitLabAPIClient, encode_id


def find_groups(client: GitLabAPIClient, query: str) -> List[str]:
    """Groups matching a search, as 'id<TAB>full_path<TAB>name' lines."""
    groups = client.get('groups', {'search': query, 'per_page': 100}) or []
    return [f"{g.get('id')}\t{g.get('full_path')}\t{g.get('name')}" for g in groups]


def find_users(client: GitLabAPIClient, query: str) -> List[str]:
    """Users matching a search, as 'id<TAB>username<TAB>name' lines."""
    users = client.get('users', {'search': query, 'per_page': 100}) or []
    return [f"{u.get('id')}\t{u.get('username')}\t{u.get('name')}" for u in users]


def list_member_projects(client: GitLabAPIClient) -> List[str]:
    projects = client.get_paginated('projects', {'membership': True})
    return [f"{p.get('id')}\t{p.get('name_with_namespace')}" for p in projects]


def show_project(client: GitLabAPIClient, project_id: str) -> Dict:
    data = client.get(f"projects/{encode_id(project_id)}")
    return {
        'id': data.get('id'),
        'name': data.get('name'),
        'name_with_namespace': data.get('name_with_namespace'),
        'path_with_namespace': data.get('path_with_namespace'),
        'namespace': data.get('namespace'),
        'web_url': data.get('web_url'),
    }
