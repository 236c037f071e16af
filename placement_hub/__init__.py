"""
Placement Hub
College placement portal: student profiles and a faculty directory.

Architecture:
- PostgreSQL: identities, role profiles, student rows (with row policies)
- MongoDB GridFS: profile images, certificates, generated resumes
- DeepSeek AI: resume generation only
"""

__version__ = "1.0.0"
