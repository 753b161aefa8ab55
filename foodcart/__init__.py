"""
                Multi-Vendor Food Cart

Cart aggregation and order-splitting engine for a multi-restaurant
food-ordering platform, with hybrid Mock/Real collaborator architecture.

Author: Khalil_Bannouri
Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Khalil_Bannouri"
