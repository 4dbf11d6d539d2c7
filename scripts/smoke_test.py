#!/usr/bin/env python3
"""
Simple smoke test for a running pagewiki server.

Usage:
  API_URL (optional, default http://localhost:8000)
  ADMIN_PASSWORD (required) exported into env for admin endpoints

Run:
  python3 scripts/smoke_test.py
"""

import os
import sys
import time
import uuid

import httpx

API_URL = os.getenv("API_URL", "http://localhost:8000").rstrip("/") + "/api/v1"
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")
TIMEOUT = 10


def admin_headers():
    return {"Content-Type": "application/json", "X-Admin-Password": ADMIN_PASSWORD}


def fail(msg):
    print("FAIL:", msg)
    sys.exit(2)


def ok(msg):
    print("OK:", msg)


def main():
    if not ADMIN_PASSWORD:
        fail("ADMIN_PASSWORD is not set")
    client = httpx.Client(timeout=TIMEOUT)

    # 1) readiness
    try:
        r = client.get(f"{API_URL}/ready")
    except Exception as e:
        fail(f"ready request failed: {e}")
    if r.status_code != 200:
        fail(f"ready returned {r.status_code}: {r.text}")
    ok("ready OK")

    # unique slugs so repeated runs don't collide
    suffix = f"{int(time.time())}-{uuid.uuid4().hex[:6]}"
    parent_slug = f"smoke-{suffix}"
    child_slug = f"smoke-{suffix}-child"

    # 2) create parent and child
    r = client.post(
        f"{API_URL}/admin/pages",
        headers=admin_headers(),
        json={"slug": parent_slug, "title": "Smoke Test", "content_md": "# Smoke Test"},
    )
    if r.status_code != 201:
        fail(f"create parent failed: {r.status_code} {r.text}")
    parent_id = r.json()["page"]["id"]

    r = client.post(
        f"{API_URL}/admin/pages",
        headers=admin_headers(),
        json={"slug": child_slug, "title": "Smoke Child", "content_md": "child", "parent_id": parent_id},
    )
    if r.status_code != 201:
        fail(f"create child failed: {r.status_code} {r.text}")
    child_id = r.json()["page"]["id"]
    ok(f"created pages (parent={parent_id}, child={child_id})")

    # 3) publish both, then read publicly
    for page_id in (parent_id, child_id):
        r = client.post(f"{API_URL}/admin/pages/{page_id}/publish", headers=admin_headers())
        if r.status_code != 200:
            fail(f"publish {page_id} failed: {r.status_code} {r.text}")
    r = client.get(f"{API_URL}/pages/{child_slug}")
    if r.status_code != 200 or r.json()["page"]["content_md"] != "child":
        fail(f"public fetch failed: {r.status_code} {r.text}")
    ok("publish + public fetch OK")

    # 4) cascade unpublish from the parent
    r = client.get(f"{API_URL}/admin/pages/{parent_id}/descendants", headers=admin_headers())
    if r.status_code != 200 or r.json()["published_count"] != 1:
        fail(f"descendant preview unexpected: {r.status_code} {r.text}")
    r = client.post(f"{API_URL}/admin/pages/{parent_id}/unpublish", headers=admin_headers())
    if r.status_code != 200 or child_id not in r.json()["affected"]:
        fail(f"cascade unpublish failed: {r.status_code} {r.text}")
    r = client.get(f"{API_URL}/pages/{child_slug}")
    if r.status_code != 404:
        fail(f"child still public after cascade: {r.status_code}")
    ok("cascade unpublish OK")

    # 5) cleanup, children first
    for page_id in (child_id, parent_id):
        r = client.delete(f"{API_URL}/admin/pages/{page_id}", headers=admin_headers())
        if r.status_code not in (200, 404):
            print("WARN: delete returned unexpected status:", r.status_code, r.text)
    ok("delete (cleanup) OK")

    print("\nSMOKE TEST PASSED\n")
    client.close()


if __name__ == "__main__":
    main()
