#!/usr/bin/env python3

class OracleError(Exception):
	'''Base class for everything raised by oraclelib'''

class MismatchedLengthsError(OracleError, ValueError):
	'''Raised when two inputs that must be the same length are not'''

class EmptyError(OracleError, ValueError):
	'''Raised when a required input is empty'''

class NotFoundError(OracleError):
	'''
	Raised when a value the attack relies on could not be determined:
	no accepting candidate, no guess table match, no alignment within the probe bound.
	Usually means the oracle is not deterministic or not the mode we think it is.
	'''

class InvalidPaddingError(OracleError, ValueError):
	'''Raised when PKCS#7 padding fails validation'''
