"""HTTP ingress for the metrics relay"""
