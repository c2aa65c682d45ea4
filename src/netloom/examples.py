"""Built-in example policies."""

import yaml

from netloom.core.models import PolicyDocuments
from netloom.k8s.loader import PolicyDocumentReader

EXAMPLE_POLICIES = """
apiVersion: networking.k8s.io/v1
kind: NetworkPolicy
metadata:
  name: deny-all
  namespace: x
spec:
  podSelector: {}
  policyTypes: [Ingress, Egress]
---
apiVersion: networking.k8s.io/v1
kind: NetworkPolicy
metadata:
  name: allow-from-y
  namespace: x
spec:
  podSelector:
    matchLabels:
      pod: a
  policyTypes: [Ingress]
  ingress:
    - from:
        - namespaceSelector:
            matchLabels:
              ns: y
      ports:
        - protocol: TCP
          port: 80
---
apiVersion: networking.k8s.io/v1
kind: NetworkPolicy
metadata:
  name: allow-dns
  namespace: x
spec:
  podSelector: {}
  policyTypes: [Egress]
  egress:
    - ports:
        - protocol: UDP
          port: 53
---
apiVersion: policy.networking.k8s.io/v1alpha1
kind: AdminNetworkPolicy
metadata:
  name: pass-monitoring
spec:
  priority: 10
  subject:
    namespaces: {}
  ingress:
    - name: pass-from-monitoring
      action: Pass
      from:
        - namespaces:
            namespaceSelector:
              matchLabels:
                ns: monitoring
---
apiVersion: policy.networking.k8s.io/v1alpha1
kind: AdminNetworkPolicy
metadata:
  name: tenant-isolation
spec:
  priority: 50
  subject:
    namespaces:
      matchExpressions:
        - key: tenant
          operator: Exists
  ingress:
    - name: allow-same-tenant
      action: Allow
      from:
        - namespaces:
            sameLabels: [tenant]
    - name: deny-other-tenants
      action: Deny
      from:
        - namespaces:
            notSameLabels: [tenant]
---
apiVersion: policy.networking.k8s.io/v1alpha1
kind: BaselineAdminNetworkPolicy
metadata:
  name: default
spec:
  subject:
    namespaces: {}
  ingress:
    - name: deny-from-z
      action: Deny
      from:
        - pods:
            namespaces:
              namespaceSelector:
                matchLabels:
                  ns: z
            podSelector: {}
      ports:
        - portRange:
            protocol: TCP
            start: 80
            end: 81
"""


def example_policies() -> PolicyDocuments:
    """v1, admin and baseline examples covering every verdict."""
    reader = PolicyDocumentReader()
    for doc in yaml.safe_load_all(EXAMPLE_POLICIES):
        if doc:
            reader.add(doc, "examples")
    return reader.documents
