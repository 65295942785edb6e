"""
First-contact pairing with a bridge
"""

from .controller import DiscoveryTimeoutController, PairingController
from .coordinator import PairingCoordinator, PairingOutcome, PairingState

__all__ = ['DiscoveryTimeoutController', 'PairingController', 'PairingCoordinator', 'PairingOutcome', 'PairingState']
