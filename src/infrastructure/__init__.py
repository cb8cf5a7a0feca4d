"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- storage: Cloudflare R2 (S3-compatible) presigned URLs
- legacy: Convex file storage, where older uploads still live
"""
