"""
Quadapprox module for defining constant values used within the package.
"""

from enum import Enum


class VariableType(str, Enum):
    """
    Kinds of variable collections registered by the approximation builders.
    """

    QUADRATIC_APPROX = "QuadraticApproxVariable"
    MANUAL_SOS2_BINARY = "ManualSOS2BinaryVariable"
    SAWTOOTH_AUX = "SawtoothAuxVariable"
    SAWTOOTH_BINARY = "SawtoothBinaryVariable"

    def __str__(self) -> str:
        return self.value


class ConstraintType(str, Enum):
    """
    Kinds of constraint collections registered by the approximation builders.
    """

    QUADRATIC_APPROX_LINKING = "QuadraticApproxLinkingConstraint"
    QUADRATIC_APPROX_NORMALIZATION = "QuadraticApproxNormalizationConstraint"
    MANUAL_SOS2_SEGMENT_SELECTION = "ManualSOS2SegmentSelectionConstraint"
    MANUAL_SOS2_ADJACENCY = "ManualSOS2AdjacencyConstraint"
    SAWTOOTH_LINKING = "SawtoothLinkingConstraint"
    # tooth map g_j <= 2 g_{j-1}, g_j <= 2 (1 - g_{j-1})
    SAWTOOTH_TOOTH_UPPER_LEFT = "SawtoothToothUpperLeftConstraint"
    SAWTOOTH_TOOTH_UPPER_RIGHT = "SawtoothToothUpperRightConstraint"
    # g_j >= 2 (g_{j-1} - a_j), g_j >= 2 (a_j - g_{j-1})
    SAWTOOTH_TOOTH_LOWER_LEFT = "SawtoothToothLowerLeftConstraint"
    SAWTOOTH_TOOTH_LOWER_RIGHT = "SawtoothToothLowerRightConstraint"

    def __str__(self) -> str:
        return self.value


SOS2_METHOD = "sos2"
MANUAL_SOS2_METHOD = "manual_sos2"
SAWTOOTH_METHOD = "sawtooth"
METHODS: tuple[str, ...] = (SOS2_METHOD, MANUAL_SOS2_METHOD, SAWTOOTH_METHOD)
