# This file is part of Poreflow.
# Licensed under MIT License.
