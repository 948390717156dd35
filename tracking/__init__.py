"""Tracking module for the shuttlecock using a Kalman filter."""

from .track import Track
from .kalman_filter import KalmanFilter, FilterState, EstimatorSnapshot
from .association import AssociationGate, GateDecision
from .iou import calculate_iou

__all__ = ['Track', 'KalmanFilter', 'FilterState', 'EstimatorSnapshot',
           'AssociationGate', 'GateDecision', 'calculate_iou']
