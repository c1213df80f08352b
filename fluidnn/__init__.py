"""
FluidNN: Fluid Neural Network Simulation

Mobile binary-state automata on a 2-D grid, after Solé & Miramontes (1995),
"Information at the edge of chaos in fluid neural networks". Neurons update
their activation from their neighbors, wander into empty cells while active,
and leave activity histories behind for information-theoretic analysis.

Architecture: FluidNeuralNetwork is the engine. Drivers and sweeps are consumers.
"""

__version__ = "0.1.0"
