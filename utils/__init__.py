"""
Utility modules: OTP protocol, collaborators, validation
"""
