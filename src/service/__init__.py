"""
Taskpad service package.

The remote persistence service used by the taskpad client: account
registration, bearer-token sessions and per-account task storage.
"""
