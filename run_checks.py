"""
Smoke check against the in-memory backend: python run_checks.py
"""

import os

os.environ.setdefault("USE_MOCK_DB", "true")

from fastapi.testclient import TestClient
from uerra.main import app

client = TestClient(app)

print('ROOT:')
print(client.get('/').json())

print('\nHEALTH:')
print(client.get('/health').json())

print('\nDB HEALTH:')
resp = client.get('/health/db')
print(resp.status_code, resp.json())

print('\nANONYMOUS SUBMISSION (expects 401):')
resp = client.post('/reports', data={"payload": '{"category_id": "fire"}'})
print(resp.status_code, resp.json())
