"""Human readable condition messages."""

from __future__ import annotations

KEYSTONE_API_INIT = "KeystoneAPI not started"
KEYSTONE_API_NOT_FOUND = "KeystoneAPI not found"
KEYSTONE_API_WAITING = "KeystoneAPI not yet ready"
KEYSTONE_API_ERROR = "KeystoneAPI error occurred {}"
KEYSTONE_API_READY = "KeystoneAPI ready"

ADMIN_CLIENT_INIT = "Admin service client not started"
ADMIN_CLIENT_WAITING = "Admin service client not yet ready: {}"
ADMIN_CLIENT_ERROR = "Admin service client error occurred {}"
ADMIN_CLIENT_READY = "Admin service client ready"

ENDPOINTS_INIT = "Keystone Service endpoints not started"
ENDPOINTS_ERROR = "Keystone Service endpoints error occurred {}"
ENDPOINTS_AMBIGUOUS = "Keystone Service endpoints need manual cleanup: {}"
ENDPOINTS_READY = "Keystone Service endpoints ready: {}"

KEYSTONE_SERVICE_INIT = ""
KEYSTONE_SERVICE_NOT_FOUND = "KeystoneService {} not found"
KEYSTONE_SERVICE_ERROR = "KeystoneService error occurred {}"
KEYSTONE_SERVICE_NO_ID = "KeystoneService {} has no service id yet"
