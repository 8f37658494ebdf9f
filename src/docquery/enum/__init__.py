from .direction import Direction as Direction, Asc as Asc, Desc as Desc
from .distance_measure import DistanceMeasure as DistanceMeasure
from .filter_operator import (
    FieldOperator as FieldOperator,
    UnaryOperator as UnaryOperator,
    CompositeOperator as CompositeOperator,
)
from .mutation_operation import MutationOperation as MutationOperation
