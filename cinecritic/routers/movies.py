from fastapi import APIRouter, HTTPException, status
from beanie import UpdateResponse
from beanie.operators import Inc
from ..models import Movie
from ..schemas import MovieResponseModel

router = APIRouter(prefix="/movies", tags=["movies"])


@router.get("/{movie_id}", response_model=MovieResponseModel)
async def get_movie(movie_id: str):
    """Local catalog record for a movie, including its community rating."""
    movie = await Movie.find_one(Movie.movie_id == movie_id)
    if not movie:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Movie '{movie_id}' not found")
    return MovieResponseModel(**movie.model_dump())


@router.post("/{movie_id}/views", status_code=status.HTTP_200_OK)
async def track_view(movie_id: str):
    movie = await Movie.find_one(Movie.movie_id == movie_id).update(
        Inc({Movie.views: 1}), response_type=UpdateResponse.NEW_DOCUMENT
    )
    if not movie:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Movie '{movie_id}' not found")
    return {"movie_id": movie_id, "views": movie.views}
